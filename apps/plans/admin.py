from django.contrib import admin

from .models import TeacherContentPlan


@admin.register(TeacherContentPlan)
class TeacherContentPlanAdmin(admin.ModelAdmin):
    list_display = ("name", "teacher", "price", "is_active", "created_at")
    search_fields = ("name", "teacher__email")
    list_filter = ("is_active",)
    filter_horizontal = ("enrolled_students",)
