from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from erp_admin.adapters.api_client import ApiError
from erp_admin.api.deps import get_auth_service, render
from erp_admin.navigation import Breadcrumb, use_breadcrumbs
from erp_admin.services.auth_service import AuthService, AuthServiceException
from erp_admin.utils.log import get_logger
from erp_admin.utils.toasts import Toast, flash
from erp_admin.utils.validation import format_validation_errors

router = APIRouter(tags=["auth"])
log = get_logger("auth")

LOGIN_TRAIL = [Breadcrumb("Sign in", is_current_page=True)]
LOGIN_FAILED = "Login failed. Please check your credentials."


def _login_page(request: Request, email: str = "", status_code: int = 200, toasts=None):
    use_breadcrumbs(request).set_breadcrumbs(LOGIN_TRAIL)
    return render(request, "login.html", {"email": email}, status_code=status_code, toasts=toasts)


@router.get("/login", summary="Sign-in form")
def login_form(request: Request):
    return _login_page(request)


@router.post("/login", summary="Sign in")
def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    auth: AuthService = Depends(get_auth_service),
):
    try:
        auth.login(email, password)
    except ValidationError as e:
        msg = "; ".join(format_validation_errors(e))
        return _login_page(request, email, status_code=422, toasts=[Toast("error", msg)])
    except (ApiError, AuthServiceException) as e:
        log.warning(f"login failed: {e}")
        return _login_page(request, email, status_code=401, toasts=[Toast("error", LOGIN_FAILED)])

    response = RedirectResponse("/products", status_code=303)
    flash(response, "success", "Login successful!")
    auth.credentials.apply(response)
    return response


@router.post("/logout", summary="Sign out")
def logout(auth: AuthService = Depends(get_auth_service)):
    auth.logout()
    response = RedirectResponse("/login", status_code=303)
    auth.credentials.apply(response)
    return response
