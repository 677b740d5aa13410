from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/upload/', include('ingest.urls')),
    path('api/data/', include('pipeline.urls')),
]
