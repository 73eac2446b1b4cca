from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z


ROLE_SUPER_ADMIN = "super-admin"
ROLE_ADMIN = "admin"
ROLE_CASHIER = "caisse"
ROLE_STOCK = "stock"
ROLE_WAITER = "serveur"

ALL_ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_CASHIER, ROLE_STOCK, ROLE_WAITER)
# Roles a restaurant admin may hand out
ASSIGNABLE_ROLES = (ROLE_ADMIN, ROLE_CASHIER, ROLE_STOCK, ROLE_WAITER)


class User(db.Model):
    """
    User accounts for authentication and attribution.

    MULTI-TENANT: Users belong to exactly one restaurant (restaurant_id).
    Super-admins are the only users without a restaurant; they manage
    restaurants and subscriptions across the installation.

    ROLES: a single role string per user. Capabilities derive from it via
    restopos.permissions.ROLE_PERMISSIONS.

    WHY: Every sale and stock movement must be attributable. No shared logins;
    waiters (serveur) sign in with a personal 4-digit PIN instead of a password.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_restaurant_role", "restaurant_id", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # MULTI-TENANT: nullable only for super-admins
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(32), nullable=False, default=ROLE_CASHIER, index=True)

    # Optional 4-digit PIN for waiter login (bcrypt hashed)
    pin_hash = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    restaurant = db.relationship("Restaurant", backref=db.backref("users", lazy=True))

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_waiter(self) -> bool:
        return self.role == ROLE_WAITER

    @property
    def can_access_stock(self) -> bool:
        return self.role in (ROLE_ADMIN, ROLE_STOCK)

    @property
    def can_access_sales(self) -> bool:
        return self.role in (ROLE_ADMIN, ROLE_CASHIER)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "has_pin": self.pin_hash is not None,
            "can_access_stock": self.can_access_stock,
            "can_access_sales": self.can_access_sales,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Secure session token management with tenant context.

    MULTI-TENANT: Session tokens carry restaurant_id to establish tenant
    context for every authenticated request without repeated lookups.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - 24-hour absolute timeout
    - 2-hour idle timeout
    - Revocable on logout, deactivation or password change
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Null for super-admin sessions
    restaurant_id = db.Column(db.Integer, db.ForeignKey("restaurants.id"), nullable=True, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship("User", backref=db.backref("session_tokens", lazy=True))
    restaurant = db.relationship("Restaurant")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "restaurant_id": self.restaurant_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
