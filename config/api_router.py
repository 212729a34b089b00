from django.conf import settings
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from opschat.chat.api.views import ChannelViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("channels", ChannelViewSet, basename="channels")


app_name = "api"
urlpatterns = router.urls
