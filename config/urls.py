"""
URL configuration for Hotel Rates project.
"""

from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Hotel Rates Admin"
admin.site.site_title = "Admin Portal"
admin.site.index_title = "Welcome to the Hotel Rates Manager"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('hotel_rates.urls')),
]
