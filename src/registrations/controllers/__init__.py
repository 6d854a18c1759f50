from .admin import FormAdminController
from .public import PublicRegistrationController

REGISTRATION_CONTROLLERS = [PublicRegistrationController, FormAdminController]

__all__ = ["REGISTRATION_CONTROLLERS", "FormAdminController", "PublicRegistrationController"]
