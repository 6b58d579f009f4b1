import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Hotel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Hotel name', max_length=200)),
                ('code', models.SlugField(help_text="URL-friendly code (e.g., 'snow-valley-resort')", unique=True)),
                ('location', models.CharField(blank=True, help_text='e.g., Gulmarg, Kashmir', max_length=255)),
                ('is_active', models.BooleanField(default=True, help_text='Whether this hotel is active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Hotel',
                'verbose_name_plural': 'Hotels',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='MealPlan',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(help_text='e.g., CP, MAP', max_length=10, unique=True)),
                ('name', models.CharField(max_length=100)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0, help_text='Display order')),
            ],
            options={
                'verbose_name': 'Meal Plan',
                'verbose_name_plural': 'Meal Plans',
                'ordering': ['sort_order', 'code'],
            },
        ),
        migrations.CreateModel(
            name='OccupancyType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('max_persons', models.PositiveIntegerField(default=2, help_text='Guests covered by one price')),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0, help_text='Display order')),
            ],
            options={
                'verbose_name': 'Occupancy Type',
                'verbose_name_plural': 'Occupancy Types',
                'ordering': ['sort_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='PricingGroupLock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(help_text='hotel:room:occupancy:meal', max_length=100, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Pricing Group Lock',
                'verbose_name_plural': 'Pricing Group Locks',
            },
        ),
        migrations.CreateModel(
            name='RoomType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0, help_text='Display order')),
            ],
            options={
                'verbose_name': 'Room Type',
                'verbose_name_plural': 'Room Types',
                'ordering': ['sort_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='HotelPricing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_date', models.DateField(help_text='First night (inclusive)')),
                ('end_date', models.DateField(help_text='Last night (inclusive). Same as start for a single night.')),
                ('price', models.DecimalField(decimal_places=2, help_text='Price per night', max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ('is_active', models.BooleanField(default=True, help_text='Whether this price is offered')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('hotel', models.ForeignKey(help_text='Hotel this price belongs to', on_delete=django.db.models.deletion.CASCADE, related_name='pricing_periods', to='hotel_rates.hotel')),
                ('meal_plan', models.ForeignKey(blank=True, help_text='Leave empty for room-only prices', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='pricing_periods', to='hotel_rates.mealplan')),
                ('occupancy_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='pricing_periods', to='hotel_rates.occupancytype')),
                ('room_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='pricing_periods', to='hotel_rates.roomtype')),
            ],
            options={
                'verbose_name': 'Hotel Pricing Period',
                'verbose_name_plural': 'Hotel Pricing Periods',
                'ordering': ['hotel', 'room_type', 'occupancy_type', 'meal_plan', 'start_date'],
                'indexes': [models.Index(fields=['hotel', 'room_type', 'occupancy_type', 'meal_plan', 'start_date'], name='hotel_pricing_group_idx')],
            },
        ),
    ]
