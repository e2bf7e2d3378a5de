import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Room",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("icon", models.CharField(max_length=32)),
                ("category", models.CharField(choices=[("living-areas", "Living areas"), ("bedrooms", "Bedrooms"), ("bathrooms", "Bathrooms"), ("utility", "Utility"), ("outdoor", "Outdoor"), ("security", "Security")], max_length=20)),
                ("description", models.TextField(blank=True)),
                ("floor", models.IntegerField(default=1)),
                ("area", models.FloatField(blank=True, null=True)),
                ("temperature_current", models.FloatField(default=22)),
                ("temperature_target", models.FloatField(default=22)),
                ("temperature_unit", models.CharField(choices=[("celsius", "Celsius"), ("fahrenheit", "Fahrenheit")], default="celsius", max_length=12)),
                ("humidity_current", models.FloatField(default=50)),
                ("humidity_target", models.FloatField(default=50)),
                ("lighting_brightness", models.IntegerField(default=0)),
                ("lighting_color", models.CharField(default="warm", max_length=8)),
                ("is_occupied", models.BooleanField(default=False)),
                ("occupancy_last_detected", models.DateTimeField(blank=True, null=True)),
                ("occupancy_sensor_id", models.CharField(blank=True, max_length=64)),
                ("auto_lighting", models.BooleanField(default=True)),
                ("auto_climate", models.BooleanField(default=True)),
                ("privacy_mode", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["category", "is_active"], name="room_category_active_idx"),
                    models.Index(fields=["name"], name="room_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Device",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("type", models.CharField(choices=[("light", "Light"), ("plug", "Plug"), ("thermostat", "Thermostat"), ("camera", "Camera"), ("sensor", "Sensor"), ("switch", "Switch")], max_length=16)),
                ("icon", models.CharField(max_length=32)),
                ("manufacturer", models.CharField(blank=True, max_length=100)),
                ("hardware_model", models.CharField(blank=True, max_length=100)),
                ("serial_number", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("firmware_version", models.CharField(blank=True, max_length=32)),
                ("is_online", models.BooleanField(default=True)),
                ("is_on", models.BooleanField(default=False)),
                ("last_seen", models.DateTimeField(default=django.utils.timezone.now)),
                ("battery_level", models.IntegerField(blank=True, null=True)),
                ("signal_strength", models.IntegerField(blank=True, null=True)),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("notes", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("room", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="devices", to="smarthome.room")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["room", "type", "is_active"], name="device_room_type_active_idx"),
                    models.Index(fields=["is_online"], name="device_online_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(choices=[("admin", "Admin"), ("user", "User"), ("guest", "Guest")], default="user", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="home_profile", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "User Profile",
                "verbose_name_plural": "User Profiles",
            },
        ),
        migrations.CreateModel(
            name="DevicePermission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("level", models.CharField(choices=[("read", "Read"), ("write", "Write"), ("admin", "Admin")], default="read", max_length=8)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("device", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="permission_entries", to="smarthome.device")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="device_permissions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.UniqueConstraint(fields=("device", "user"), name="unique_device_user_permission"),
                ],
            },
        ),
    ]
