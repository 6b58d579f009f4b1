"""
URL configuration package.

Combines all URL patterns into a single urlpatterns list.
The app_name stays 'hotel_rates' for namespace.
"""

from .pricing import urlpatterns as pricing_urls

app_name = 'hotel_rates'

urlpatterns = pricing_urls
