"""
Portal descriptors.

Each descriptor is a declarative, ordered set of selector rules describing how
to find a portal's listing, its rows, its login form and its success/failure
signals. Adapters and the listing extractor evaluate these rules; they never
hard-code selectors themselves.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .models import PortalType


DATE_ORDER_DUE_ONLY = "due_only"
DATE_ORDER_POSTED_THEN_DUE = "posted_then_due"


@dataclass(frozen=True)
class PortalDescriptor:
    """Selector rules for one portal."""
    name: str
    portal_type: PortalType
    default_url: str = ""
    # Any of these marks the listing as loaded
    container_selectors: Tuple[str, ...] = ("table", "tbody tr")
    # Tried in order, the first producing rows wins
    row_selectors: Tuple[str, ...] = ("tbody tr", "table tr")
    title_selectors: Tuple[str, ...] = ()
    document_tokens: Tuple[str, ...] = (".pdf", "document", "doc", "attachment")
    date_order: str = DATE_ORDER_DUE_ONLY
    skip_header_rows: bool = False
    # Login form, each tried in order
    username_selectors: Tuple[str, ...] = ()
    password_selectors: Tuple[str, ...] = ()
    submit_selectors: Tuple[str, ...] = ()
    logout_selectors: Tuple[str, ...] = ()
    failure_texts: Tuple[str, ...] = ()

    @property
    def slug(self) -> str:
        return slugify(self.name)

    @property
    def wait_selector(self) -> str:
        return ", ".join(self.container_selectors)


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", (value or "").lower()).strip("_")
    return slug or "portal"


LOGIN_USERNAME_SELECTORS = (
    'input[name="username"]',
    'input[name="email"]',
    'input[name="login"]',
    "#username",
    "#email",
    "#login",
    'input[type="email"]',
    'input[type="text"]',
)

LOGIN_PASSWORD_SELECTORS = (
    'input[name="password"]',
    "#password",
    'input[type="password"]',
)

LOGIN_SUBMIT_SELECTORS = (
    'button[type="submit"]',
    'input[type="submit"]',
    "#login-button",
    "#submit",
    'button:has-text("Log in")',
    'button:has-text("Login")',
    'button:has-text("Sign in")',
    "button",
)

LOGOUT_SELECTORS = (
    'a[href*="logout"]',
    'a[href*="signout"]',
    'a[href*="sign_out"]',
    "#logout",
    ".logout",
    'button:has-text("Logout")',
    'a:has-text("Log out")',
    'a:has-text("Sign out")',
)

LOGIN_FAILURE_TEXTS = (
    "invalid username",
    "invalid password",
    "invalid credentials",
    "login failed",
    "incorrect username",
    "incorrect password",
    "authentication failed",
)


PUBLIC_LISTING = PortalDescriptor(
    name="Public",
    portal_type=PortalType.PUBLIC,
    container_selectors=(
        "table",
        "tr[data-row]",
        ".solicitation-row",
        ".solicitation",
        ".listing-item",
    ),
    row_selectors=(
        "tr[data-row]",
        ".solicitation-row",
        "tbody tr",
        "table tr",
        ".solicitation",
        ".listing-item",
        ".card",
    ),
    title_selectors=(".title", ".solicitation-title", "td:nth-of-type(1)"),
)

AUTHENTICATED_LISTING = PortalDescriptor(
    name="Authenticated",
    portal_type=PortalType.AUTHENTICATED,
    container_selectors=(
        "table",
        ".requisition",
        ".requisition-row",
        ".list-group",
        "ul.results",
    ),
    row_selectors=(
        "table tbody tr",
        "table tr",
        ".requisition-row",
        ".requisition",
        ".list-group-item",
        "ul.results li",
    ),
    title_selectors=(".title", ".requisition-title", "a"),
    date_order=DATE_ORDER_POSTED_THEN_DUE,
    skip_header_rows=True,
    username_selectors=LOGIN_USERNAME_SELECTORS,
    password_selectors=LOGIN_PASSWORD_SELECTORS,
    submit_selectors=LOGIN_SUBMIT_SELECTORS,
    logout_selectors=LOGOUT_SELECTORS,
    failure_texts=LOGIN_FAILURE_TEXTS,
)

METRO = PortalDescriptor(
    name="Metro",
    portal_type=PortalType.PUBLIC,
    default_url=(
        "https://business.metro.net/webcenter/portal/VendorPortal/"
        "pages_home/solicitations/openSolicitations"
    ),
    container_selectors=PUBLIC_LISTING.container_selectors,
    row_selectors=PUBLIC_LISTING.row_selectors,
    title_selectors=PUBLIC_LISTING.title_selectors,
)

SEPTA = PortalDescriptor(
    name="SEPTA",
    portal_type=PortalType.AUTHENTICATED,
    default_url="https://epsadmin.septa.org/vendor/requisitions/list/",
    container_selectors=AUTHENTICATED_LISTING.container_selectors,
    row_selectors=AUTHENTICATED_LISTING.row_selectors,
    title_selectors=AUTHENTICATED_LISTING.title_selectors,
    date_order=DATE_ORDER_POSTED_THEN_DUE,
    skip_header_rows=True,
    username_selectors=LOGIN_USERNAME_SELECTORS,
    password_selectors=LOGIN_PASSWORD_SELECTORS,
    submit_selectors=LOGIN_SUBMIT_SELECTORS,
    logout_selectors=LOGOUT_SELECTORS,
    failure_texts=LOGIN_FAILURE_TEXTS,
)

# Known portals by lower-cased name
KNOWN_PORTALS: Dict[str, PortalDescriptor] = {
    "metro": METRO,
    "metro.net": METRO,
    "septa": SEPTA,
}

GENERIC_PORTALS: Dict[PortalType, PortalDescriptor] = {
    PortalType.PUBLIC: PUBLIC_LISTING,
    PortalType.AUTHENTICATED: AUTHENTICATED_LISTING,
}


def get_portal_descriptor(portal_type: PortalType, portal_name: Optional[str] = None) -> PortalDescriptor:
    """
    Resolve the descriptor for a credential.

    A known portal is only used when its type matches; anything else gets the
    generic descriptor for the portal type.
    """
    portal_type = PortalType(portal_type)
    known = KNOWN_PORTALS.get((portal_name or "").strip().lower())
    if known is not None and known.portal_type is portal_type:
        return known
    return GENERIC_PORTALS[portal_type]


def default_url_for(portal_type: PortalType, portal_name: Optional[str] = None,
                    overrides: Optional[Dict[str, str]] = None) -> str:
    """Well-known listing address for a portal, or an empty string."""
    if overrides:
        override = overrides.get((portal_name or "").strip().lower())
        if override:
            return override
    return get_portal_descriptor(portal_type, portal_name).default_url
