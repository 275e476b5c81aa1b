from django.urls import path

from .views import CurrentAdminView, CustomTokenObtainPairView, CustomTokenRefreshView, LogoutView

app_name = "authentication"

urlpatterns = [
    path("token/", CustomTokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("token/refresh/", CustomTokenRefreshView.as_view(), name="token_refresh"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("me/", CurrentAdminView.as_view(), name="me"),
]
