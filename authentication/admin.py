from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import CustomUser


class CustomUserAdmin(UserAdmin):
    model = CustomUser

    list_display = ('email', 'name', 'role', 'is_staff', 'is_active', 'created_at')
    list_filter = ('role', 'is_staff', 'is_active')
    search_fields = ('email', 'name')

    readonly_fields = ('uuid', 'last_login', 'created_at', 'updated_at')

    fieldsets = (
        (None, {'fields': ('email', 'password')}),

        ('Personal Info', {
            'fields': ('name', 'phone', 'address', 'avatar')
        }),

        ('Permissions', {
            'fields': ('role', 'is_active', 'is_staff', 'is_superuser')
        }),

        ('Important Dates', {
            'fields': ('uuid', 'last_login', 'created_at', 'updated_at')
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'name', 'password1', 'password2', 'role', 'is_staff', 'is_superuser'),
        }),
    )

    ordering = ('email',)


admin.site.register(CustomUser, CustomUserAdmin)
