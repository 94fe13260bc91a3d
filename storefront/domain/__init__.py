"""
Domain models (pydantic) for request validation and response shaping
"""
from .base import DomainModel, to_jsonable
from .user import (
    UserRole,
    UserRegister,
    UserLogin,
    RefreshTokenRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ChangePasswordRequest,
    ProfileUpdate,
    AdminUserUpdate,
    UserResponse,
    AddressCreate,
    AddressUpdate,
    AddressResponse,
)
from .catalog import (
    ImageRef,
    VariantChoice,
    ReorderItem,
    BrandCreate,
    BrandUpdate,
    BrandResponse,
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    StockAdjustment,
)
from .cart import (
    CartItemAdd,
    CartItemUpdate,
    ApplyCouponRequest,
    ShippingAddress,
    ShippingRequest,
    CartResponse,
)
from .coupon import (
    CouponType,
    CouponCreate,
    CouponUpdate,
    CouponValidateRequest,
    CouponResponse,
    PublicCouponResponse,
)
from .order import (
    OrderStatusEnum,
    PaymentStatus,
    PaymentMethod,
    OrderItemRequest,
    OrderCreate,
    OrderStatusUpdate,
    PaymentUpdate,
    TrackingCreate,
    TrackingUpdate,
    RefundRequest,
    OrderResponse,
)
from .review import (
    ReviewStatus,
    ReportAction,
    ReviewCreate,
    ReviewUpdate,
    ReviewStatusUpdate,
    ReviewReportRequest,
    ReportHandleRequest,
    ReviewResponse,
    ReportedReviewResponse,
)
