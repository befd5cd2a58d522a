from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import ValidationError

from erp_admin.adapters.api_client import ApiError
from erp_admin.schemas.product_schema import Product
from erp_admin.services.product_form import FormState, blank_form, form_from_product
from erp_admin.utils.toasts import Toast
from erp_admin.utils.validation import format_validation_errors


class ProductPageError(Exception):
    pass


class PageMode(str, Enum):
    BROWSING = "browsing"
    COMPOSING = "composing"
    SUBMITTING = "submitting"
    EDITING = "editing"
    VIEWING = "viewing"


class Pagination(NamedTuple):
    page: int
    limit: int
    total: int
    total_pages: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def visible(self) -> bool:
        return self.total_pages > 1

    @property
    def first_item(self) -> int:
        return (self.page - 1) * self.limit + 1

    @property
    def last_item(self) -> int:
        return min(self.page * self.limit, self.total)


class ProductPageState:
    """
    UI state of the product management page.

    browsing -> composing (add) | editing (edit) | viewing (details)
    composing/editing -> submitting -> browsing on success, back to the dialog on failure
    viewing -> browsing | editing
    """

    def __init__(self, query: str = "", page: int = 1):
        self.mode = PageMode.BROWSING
        self.query = query
        self.page = max(1, page)
        self.selected: Optional[Product] = None
        self.form: FormState = blank_form()
        self.toasts: List[Toast] = []
        self.pending_delete: Optional[Product] = None
        self._return_mode: Optional[PageMode] = None

    def _require(self, *modes: PageMode) -> None:
        if self.mode not in modes:
            allowed = ", ".join(m.value for m in modes)
            raise ProductPageError(f"Not allowed while {self.mode.value} (expected {allowed})")

    @property
    def dialog_title(self) -> str:
        return "Edit Product" if self.selected is not None else "Add New Product"

    @property
    def is_submitting(self) -> bool:
        return self.mode == PageMode.SUBMITTING

    # ---- list ----

    def search(self, query: str) -> None:
        self.query = (query or "").strip()
        self.page = 1

    def go_to_page(self, page: int) -> None:
        self.page = max(1, page)

    # ---- dialogs ----

    def open_add(self) -> None:
        self._require(PageMode.BROWSING)
        self.selected = None
        self.form = blank_form()
        self.mode = PageMode.COMPOSING

    def open_edit(self, product: Product) -> None:
        self._require(PageMode.BROWSING, PageMode.VIEWING)
        self.selected = product
        self.form = form_from_product(product)
        self.mode = PageMode.EDITING

    def open_view(self, product: Product) -> None:
        self._require(PageMode.BROWSING)
        self.selected = product
        self.mode = PageMode.VIEWING

    def close(self) -> None:
        self._require(PageMode.COMPOSING, PageMode.EDITING, PageMode.VIEWING)
        self.selected = None
        self.form = blank_form()
        self.mode = PageMode.BROWSING

    def restore_form(self, form: FormState) -> None:
        """Carry the in-progress form over from the previous render of an open dialog."""
        self._require(PageMode.COMPOSING, PageMode.EDITING)
        self.form = form

    # ---- submission ----

    def begin_submit(self) -> None:
        self._require(PageMode.COMPOSING, PageMode.EDITING)
        self._return_mode = self.mode
        self.mode = PageMode.SUBMITTING

    def submit_succeeded(self, message: str) -> None:
        self._require(PageMode.SUBMITTING)
        self.toasts.append(Toast("success", message))
        self.selected = None
        self.form = blank_form()
        self.mode = PageMode.BROWSING
        self._return_mode = None

    def submit_failed(self, error: Exception, fallback: str) -> None:
        self._require(PageMode.SUBMITTING)
        self.toasts.append(error_toast(error, fallback))
        self.mode = self._return_mode or PageMode.COMPOSING
        self._return_mode = None

    # ---- delete confirmation gate ----

    def request_delete(self, product: Product) -> None:
        self._require(PageMode.BROWSING)
        self.pending_delete = product

    def confirm_delete(self) -> Product:
        if self.pending_delete is None:
            raise ProductPageError("No delete awaiting confirmation")
        product, self.pending_delete = self.pending_delete, None
        return product

    def cancel_delete(self) -> None:
        self.pending_delete = None


def error_toast(error: Exception, fallback: str) -> Toast:
    if isinstance(error, ValidationError):
        return Toast("error", "; ".join(format_validation_errors(error)))
    if isinstance(error, ApiError):
        return Toast("error", error.message or fallback)
    return Toast("error", fallback)
