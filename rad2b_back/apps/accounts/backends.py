from django.contrib.auth.backends import ModelBackend
from apps.accounts.models import User

class LoginBackend(ModelBackend):
    def authenticate(self, request, email = None, password = None, **kwargs):
        # admin 로그인 폼은 username 키로 전달
        email = email or kwargs.get("username")
        if not email or password is None:
            return None

        try:
            user = User.objects.get(email__iexact = email)
        except User.DoesNotExist :
            return None

        if user.check_password(password):
            return user
        return None
