# ============================================
# CENTRALIZED ROLE → PERMISSIONS MAP
# ============================================
# Explicit enumeration only: a role that should be a superset of
# another lists the other role's permissions again. Nothing is inherited.
# Admin needs no enumeration for access (the evaluator grants it every
# permission); its list only documents the admin-only permissions.

ROLE_PERMISSIONS = {

    # =====================================================
    # CUSTOMER
    # =====================================================
    "customer": [
        "products:view",
        "orders:view", "orders:create",
        "cart:manage",
        "profile:manage",
    ],

    # =====================================================
    # INVENTORY STAFF: customer + stock management
    # =====================================================
    "inventory_staff": [
        "products:view",
        "orders:view", "orders:create",
        "cart:manage",
        "profile:manage",

        "inventory:view", "inventory:manage",
        "products:manage",
        "stock:update",
    ],

    # =====================================================
    # MARKETING STAFF: customer + campaigns
    # =====================================================
    "marketing_staff": [
        "products:view",
        "orders:view", "orders:create",
        "cart:manage",
        "profile:manage",

        "campaigns:view", "campaigns:manage",
        "bundles:manage",
        "content:manage",
        "analytics:view",
    ],

    # =====================================================
    # EXECUTIVE: read access across business areas
    # =====================================================
    "executive": [
        "products:view",
        "orders:view", "orders:create",
        "cart:manage",
        "profile:manage",

        "inventory:view",
        "campaigns:view",
        "analytics:view",
        "dashboard:view",
        "reports:view", "reports:generate",
        "insights:view",
    ],

    # =====================================================
    # ADMIN: bypass handled by the evaluator
    # =====================================================
    "admin": [
        "users:manage",
        "users:manage_roles",
        "system:manage",
    ],
}


# ============================================
# ROLE HIERARCHY (higher satisfies lower)
# ============================================
ROLE_HIERARCHY = {
    "customer": 1,
    "inventory_staff": 2,
    "marketing_staff": 3,
    "executive": 4,
    "admin": 5,
}
