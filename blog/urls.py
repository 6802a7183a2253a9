from django.urls import path
from . import views

app_name = "blog"

urlpatterns = [
    path("", views.home, name="home"),
    path("login/", views.login, name="login"),
    path("logout/", views.logout, name="logout"),
    path("register/", views.register, name="register"),
    path("create/", views.create_page, name="create"),
    path("edit/<str:post_id>/", views.edit_page, name="edit"),
    # Dialog submissions from the listing page.
    path("blogs/create/", views.create_post, name="create_post"),
    path("blogs/<str:post_id>/edit/", views.edit_post, name="edit_post"),
    path("blogs/<str:post_id>/delete/", views.delete_post, name="delete_post"),
]
