from rest_framework.authentication import SessionAuthentication

from blog.session import AUTH_KEY


class GatewaySessionAuthentication(SessionAuthentication):
    """
    CSRF checks for API calls that ride on the gateway session kept in the
    Django session cookie.

    Identity itself is resolved by the view (BlogScreen), so this never
    authenticates a Django user.
    """

    def authenticate(self, request):
        session = getattr(request._request, "session", None)
        if session is None or not session.get(AUTH_KEY):
            return None
        self.enforce_csrf(request)
        return None
