from django.urls import path
from . import views

app_name = "blogapi"

urlpatterns = [
    path("blogs/", views.blogs, name="blogs"),
    path("blogs/<str:post_id>/", views.blog_detail, name="blog_detail"),
    path("blogs/<str:post_id>/delete-request/", views.blog_delete_request, name="blog_delete_request"),
]
