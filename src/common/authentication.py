import typing as t

from django.http import HttpRequest
from django.utils import translation
from ninja_jwt.authentication import JWTAuth


class I18nJWTAuth(JWTAuth):
    """JWT authentication that activates the request's preferred language.

    The language comes from the ``Accept-Language`` header, resolved by
    Django's translation machinery, and is activated once the token has been
    validated so error messages and emails use it.

    Usage:
        @route.get("/endpoint", auth=I18nJWTAuth())
        def my_endpoint(request):
            return {"message": str(_("Hello!"))}
    """

    def authenticate(self, request: HttpRequest, token: str) -> t.Any:
        """Authenticate the request and activate the preferred language.

        Raises:
            AuthenticationFailed: If authentication fails
            InvalidToken: If the token is invalid
        """
        user = super().authenticate(request, token)
        if user:
            language = translation.get_language_from_request(request)
            translation.activate(language)
            request.LANGUAGE_CODE = language
        return user
