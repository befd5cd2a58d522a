from typing import Callable, Dict, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from erp_admin.adapters.api_client import ApiError
from erp_admin.api.deps import get_product_repo, render, require_login
from erp_admin.navigation import PRODUCTS_TRAIL, use_breadcrumbs
from erp_admin.repositories.mutation import Mutation
from erp_admin.repositories.product_repo import ProductRepository
from erp_admin.schemas.product_schema import Product
from erp_admin.services.product_form import (
    ProductFormError,
    apply_action,
    field_name,
    form_to_payload,
    parse_form,
)
from erp_admin.services.product_page import Pagination, PageMode, ProductPageState, error_toast
from erp_admin.utils.log import get_logger
from erp_admin.utils.toasts import Toast, flash

router = APIRouter(prefix="/products", tags=["products"], dependencies=[Depends(require_login)])
log = get_logger("products")


def _list_url(query: str = "", page: int = 1) -> str:
    params = {}
    if query:
        params["q"] = query
    if page > 1:
        params["page"] = page
    return "/products" + ("?" + urlencode(params) if params else "")


def _render_page(request: Request, state: ProductPageState, repo: ProductRepository, status_code: int = 200):
    """Render the list with whichever dialog the state has open."""
    use_breadcrumbs(request).set_breadcrumbs(PRODUCTS_TRAIL)
    result, load_error = None, None
    try:
        result = repo.list(search=state.query, page=state.page)
    except ApiError as e:
        log.warning(f"product list failed: status={e.status} {e.message}")
        load_error = e
        state.toasts.append(error_toast(e, "Failed to load products"))

    pagination = None
    if result is not None:
        meta = result.meta
        pagination = Pagination(state.page, meta.limit or repo.page_size, meta.total, meta.total_pages)
    return render(
        request,
        "products/page.html",
        {
            "state": state,
            "modes": PageMode,
            "products": result.items if result is not None else [],
            "pagination": pagination,
            "load_error": load_error,
            "list_url": _list_url,
            "field_name": field_name,
        },
        status_code=status_code,
        toasts=state.toasts,
    )


def _load_product(repo: ProductRepository, product_id: str):
    """Fetch one product for a dialog; returns (product, error_redirect)."""
    try:
        product = repo.get_by_id(product_id)
    except ApiError as e:
        response = RedirectResponse("/products", status_code=303)
        flash(response, "error", e.message or "Failed to load product")
        return None, response
    if product is None:
        response = RedirectResponse("/products", status_code=303)
        flash(response, "error", "Product not found")
        return None, response
    return product, None


def _failure_status(error: Optional[Exception]) -> int:
    if isinstance(error, ValidationError):
        return 422
    if isinstance(error, ApiError) and 400 <= error.status < 500:
        return error.status
    return 502


async def _handle_form_post(
    request: Request,
    state: ProductPageState,
    repo: ProductRepository,
    save: Callable[[Dict], Optional[Product]],
    success_message: str,
    failure_message: str,
):
    form = await request.form()
    fields = {k: v for k, v in form.items() if isinstance(v, str)}
    action = fields.pop("action", "save")
    state.restore_form(parse_form(fields))

    if action != "save":
        # sub-form edits stay local: no backend call until the form is saved
        try:
            state.restore_form(apply_action(state.form, action))
        except ProductFormError as e:
            state.toasts.append(Toast("error", str(e)))
        return await run_in_threadpool(_render_page, request, state, repo)

    form_state = state.form
    mutation = Mutation(lambda: save(form_to_payload(form_state)))
    state.begin_submit()
    await run_in_threadpool(mutation.mutate)
    if mutation.is_success:
        state.submit_succeeded(success_message)
        response = RedirectResponse("/products", status_code=303)
        flash(response, "success", success_message)
        return response

    log.info(f"product save failed: {mutation.error!r}")
    state.submit_failed(mutation.error, failure_message)
    return await run_in_threadpool(_render_page, request, state, repo, _failure_status(mutation.error))


@router.get("", summary="Product list")
def list_products(
    request: Request,
    q: Optional[str] = Query(None, description="search term"),
    page: int = Query(1, ge=1),
    repo: ProductRepository = Depends(get_product_repo),
):
    state = ProductPageState()
    state.search(q or "")
    state.go_to_page(page)
    return _render_page(request, state, repo)


@router.get("/new", summary="Add product dialog")
def new_product(request: Request, repo: ProductRepository = Depends(get_product_repo)):
    state = ProductPageState()
    state.open_add()
    return _render_page(request, state, repo)


@router.post("/new", summary="Create product or edit the add-product form")
async def create_product(request: Request, repo: ProductRepository = Depends(get_product_repo)):
    state = ProductPageState()
    state.open_add()
    return await _handle_form_post(
        request, state, repo, repo.create, "Product created successfully", "Failed to create product"
    )


@router.get("/{product_id}", summary="Product details dialog")
def view_product(product_id: str, request: Request, repo: ProductRepository = Depends(get_product_repo)):
    product, redirect = _load_product(repo, product_id)
    if redirect is not None:
        return redirect
    state = ProductPageState()
    state.open_view(product)
    return _render_page(request, state, repo)


@router.get("/{product_id}/edit", summary="Edit product dialog")
def edit_product(product_id: str, request: Request, repo: ProductRepository = Depends(get_product_repo)):
    product, redirect = _load_product(repo, product_id)
    if redirect is not None:
        return redirect
    state = ProductPageState()
    state.open_edit(product)
    return _render_page(request, state, repo)


@router.post("/{product_id}/edit", summary="Update product or edit the form")
async def update_product(product_id: str, request: Request, repo: ProductRepository = Depends(get_product_repo)):
    product, redirect = await run_in_threadpool(_load_product, repo, product_id)
    if redirect is not None:
        return redirect
    state = ProductPageState()
    state.open_edit(product)
    return await _handle_form_post(
        request,
        state,
        repo,
        lambda payload: repo.update(product_id, payload),
        "Product updated successfully",
        "Failed to update product",
    )


@router.get("/{product_id}/delete", summary="Delete confirmation")
def confirm_delete_product(product_id: str, request: Request, repo: ProductRepository = Depends(get_product_repo)):
    product, redirect = _load_product(repo, product_id)
    if redirect is not None:
        return redirect
    state = ProductPageState()
    state.request_delete(product)
    return _render_page(request, state, repo)


@router.post("/{product_id}/delete", summary="Delete product")
def delete_product(
    product_id: str,
    confirm: str = Form(""),
    repo: ProductRepository = Depends(get_product_repo),
):
    product, redirect = _load_product(repo, product_id)
    if redirect is not None:
        return redirect
    state = ProductPageState()
    state.request_delete(product)
    response = RedirectResponse("/products", status_code=303)
    if confirm != "yes":
        state.cancel_delete()
        return response
    target = state.confirm_delete()
    mutation = Mutation(repo.delete).mutate(target.id)
    if mutation.is_success:
        flash(response, "success", "Product deleted successfully")
    else:
        flash(response, "error", error_toast(mutation.error, "Failed to delete product").message)
    return response
