from django.urls import include, path

urlpatterns = [
    path("api/", include("blogapi.urls")),
    path("", include("blog.urls")),
]

handler404 = "blog.views.not_found"
