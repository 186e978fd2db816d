from django.db import models

# Role 모델
class Role(models.Model):
    ADMIN = "ADMIN"
    TRAINEE = "TRAINEE"

    code = models.CharField(max_length=50, unique = True) # ADMIN, TRAINEE
    name = models.CharField(max_length=50)
    description = models.TextField(blank= True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add = True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) :
        return self.name
