from dataclasses import dataclass

from itsdangerous import BadSignature, URLSafeTimedSerializer

from quizroom.errors import AuthenticationFailed


@dataclass
class Identity:
    identity: str
    name: str

    def to_dict(self):
        return {'identity': self.identity, 'name': self.name}


class SignedTokenVerifier:
    """Turns an opaque credential into a participant identity.

    Credentials are itsdangerous-signed payloads keyed on the app's
    SECRET_KEY. Anything that fails to verify raises AuthenticationFailed.
    """

    salt = 'quizroom-identity'

    def __init__(self, secret_key: str, max_age: int = 86400):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=self.salt)
        self.max_age = max_age

    def issue(self, identity: str, name: str) -> str:
        return self._serializer.dumps({'id': str(identity), 'name': name or str(identity)})

    def verify(self, credential) -> Identity:
        if not credential or not isinstance(credential, str):
            raise AuthenticationFailed('missing token')
        try:
            data = self._serializer.loads(credential, max_age=self.max_age)
        except BadSignature as exc:
            # SignatureExpired is a BadSignature too
            raise AuthenticationFailed('invalid token') from exc
        if not isinstance(data, dict) or not data.get('id'):
            raise AuthenticationFailed('invalid token')
        return Identity(identity=str(data['id']), name=data.get('name') or str(data['id']))


def bearer_token(header_value) -> str:
    if not header_value:
        return ''
    parts = header_value.split(None, 1)
    if len(parts) == 2 and parts[0].lower() == 'bearer':
        return parts[1].strip()
    return ''
