from django.apps import AppConfig


class HotelRatesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'hotel_rates'
    verbose_name = 'Hotel Rates'
    
    def ready(self):
        """Import signals when app is ready."""
        import hotel_rates.signals  # noqa
