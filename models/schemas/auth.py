from marshmallow import Schema, fields, pre_load, validates, ValidationError


def _norm_username(v):
    return v.strip().lower() if isinstance(v, str) else v


class RegisterSchema(Schema):
    username = fields.String(required=True)
    password = fields.String(required=True, load_only=True)
    roles = fields.List(fields.String(), load_default=None)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "username" in data:
            data["username"] = _norm_username(data["username"])
        return data

    @validates("username")
    def validate_username(self, value, **kwargs):
        if not value or len(value) < 3:
            raise ValidationError("Username must be at least 3 characters long.")

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < 6:
            raise ValidationError("Password must be at least 6 characters long.")


class LoginSchema(Schema):
    username = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "username" in data:
            data["username"] = _norm_username(data["username"])
        return data


class RefreshRequestSchema(Schema):
    refresh_token = fields.String(required=True)


class TokenPairSchema(Schema):
    access_token = fields.String()
    refresh_token = fields.String()
    token_type = fields.Constant("Bearer")
    expires_in = fields.Integer()
    username = fields.String(attribute="subject")


class UserOutSchema(Schema):
    id = fields.String()
    username = fields.String()
    roles = fields.List(fields.String())
