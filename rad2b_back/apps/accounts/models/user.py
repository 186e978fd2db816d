from django.db import models
from django.contrib.auth.models import(
    BaseUserManager,
    AbstractBaseUser,
    PermissionsMixin,
)
from .role import Role

# 최상위 관리자 모델
class UserManager(BaseUserManager):
    def create_user(self, email, password=None, role=None, **extra_fields):
        if not email:
            raise ValueError("이메일은 필수 항목")

        email = self.normalize_email(email)
        user = self.model(email=email, role=role, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)

        # role 기본값 지정
        try:
            admin_role = Role.objects.get(code=Role.ADMIN)
        except Role.DoesNotExist:
            admin_role = None
        extra_fields.setdefault("role", admin_role)

        return self.create_user(email, password, **extra_fields)


# User 모델
class User(AbstractBaseUser, PermissionsMixin):
    email = models.EmailField(unique=True)
    must_change_password = models.BooleanField(default=False)

    first_name = models.CharField(max_length=100, blank=True, null=True)
    last_name = models.CharField(max_length=100, blank=True, null=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    role = models.ForeignKey(
        Role,
        on_delete=models.SET_NULL,
        null=True,
        blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    failed_login_count = models.PositiveIntegerField(default=0)  # 로그인 실패 횟수
    is_locked = models.BooleanField(default=False)   # 자동 잠금 여부
    locked_at = models.DateTimeField(null=True, blank=True)  # 계정 잠금 시각

    # 충돌 방지 : related_name 지정
    groups = models.ManyToManyField(
        "auth.Group",
        related_name= "custom_user_groups",
        blank= True
    )
    user_permissions = models.ManyToManyField(
        "auth.Permission",
        related_name="custom_user_permissions",
        blank=True,
    )

    objects = UserManager()

    # 마지막 로그인 IP 주소
    last_login_ip = models.GenericIPAddressField(
        null=True,
        blank=True
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.email

    @property
    def role_code(self):
        return self.role.code if self.role else None

    @property
    def is_admin(self):
        return self.role_code == Role.ADMIN

    @property
    def display_name(self):
        """이름 표시 (이름/성 중 있는 값, 둘 다 없으면 Unknown)"""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        if self.first_name:
            return self.first_name
        if self.last_name:
            return self.last_name
        return "Unknown"


def get_creator_name(user):
    """케이스 작성자 표시명 (작성자 없음 = System)"""
    if user is None:
        return "System"
    return user.display_name
