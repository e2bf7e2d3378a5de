from django.contrib import admin

from .models import Device, DevicePermission, Room, UserProfile


class DevicePermissionInline(admin.TabularInline):
    model = DevicePermission
    extra = 0
    readonly_fields = ("created_at",)


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "floor", "is_occupied", "is_active")
    list_filter = ("category", "is_active")
    search_fields = ("name",)


@admin.register(Device)
class DeviceAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "room", "is_online", "is_on", "version", "is_active")
    list_filter = ("type", "is_online", "is_active")
    search_fields = ("name", "serial_number", "room__name")
    readonly_fields = ("version", "created_at", "updated_at")
    inlines = [DevicePermissionInline]


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "created_at")
    list_filter = ("role",)
    search_fields = ("user__username",)
