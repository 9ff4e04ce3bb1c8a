from django.db import migrations, models
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='TenantModule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tenant_id', models.CharField(db_index=True, max_length=100)),
                ('module_name', models.CharField(max_length=100)),
                ('enabled_by', models.CharField(default='system', help_text='User or process that enabled the module', max_length=150)),
                ('enabled_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'platform_tenant_modules',
                'ordering': ['tenant_id', 'enabled_at'],
                'unique_together': {('tenant_id', 'module_name')},
            },
        ),
    ]
