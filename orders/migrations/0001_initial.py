from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('local_order_id', models.CharField(max_length=40, unique=True)),
                ('payment_id', models.CharField(max_length=128, unique=True)),
                ('provider', models.CharField(choices=[('stripe', 'Stripe'), ('paystack', 'Paystack'), ('opay', 'OPay')], max_length=16)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('submitting', 'Submitting'), ('processed', 'Processed'), ('failed', 'Failed')], db_index=True, default='pending', max_length=16)),
                ('customer_name', models.CharField(blank=True, default='', max_length=200)),
                ('customer_email', models.EmailField(blank=True, default='', max_length=254)),
                ('shipping_address', models.JSONField(blank=True, default=dict)),
                ('items', models.JSONField(default=list)),
                ('currency', models.CharField(default='USD', max_length=3)),
                ('total_amount', models.PositiveBigIntegerField()),
                ('supplier_share', models.PositiveBigIntegerField(default=0)),
                ('charge_currency', models.CharField(default='USD', max_length=3)),
                ('charge_amount', models.PositiveBigIntegerField()),
                ('exchange_rate', models.DecimalField(blank=True, decimal_places=6, max_digits=18, null=True)),
                ('supplier_response', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('processed_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'ordering': ('-created_at',),
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(('supplier_share__lte', models.F('total_amount'))),
                        name='order_profit_not_negative',
                    ),
                ],
            },
        ),
    ]
