from django.db.models import TextChoices


class FamilyMemberRole(TextChoices):
    PARENT = "parent", "Parent"
    ASSISTANT = "assistant", "Assistant"
    CHILD = "child", "Child"
