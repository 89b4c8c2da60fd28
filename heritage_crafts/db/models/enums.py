from enum import Enum


class UserRole(str, Enum):
    LEARNER = "LEARNER"
    CRAFTSMAN = "CRAFTSMAN"
    ADMIN = "ADMIN"


class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class CourseStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DRAFT = "DRAFT"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class ProductStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class AlertType(str, Enum):
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    RESTOCK_REMINDER = "RESTOCK_REMINDER"


class EntityType(str, Enum):
    COURSE = "COURSE"
    PRODUCT = "PRODUCT"
    CRAFTSMAN_PROFILE = "CRAFTSMAN_PROFILE"
    COMMENT = "COMMENT"


class ReportStatus(str, Enum):
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"


class NotificationType(str, Enum):
    NEW_FOLLOWER = "NEW_FOLLOWER"
    COURSE_UPDATE = "COURSE_UPDATE"
    PRODUCT_UPDATE = "PRODUCT_UPDATE"
    BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
    BOOKING_CANCELLED = "BOOKING_CANCELLED"
    NEW_BOOKING = "NEW_BOOKING"
    NEW_ORDER = "NEW_ORDER"
    ORDER_STATUS_UPDATE = "ORDER_STATUS_UPDATE"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    COURSE_REMINDER = "COURSE_REMINDER"
    ACTIVITY_UPDATE = "ACTIVITY_UPDATE"


class BehaviorEventType(str, Enum):
    VIEW = "view"
    SEARCH = "search"
    CLICK = "click"
    PURCHASE = "purchase"
    BOOKMARK = "bookmark"
    SHARE = "share"


class PaymentProvider(str, Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"


class EventType(str, Enum):
    WORKSHOP = "WORKSHOP"
    EXHIBITION = "EXHIBITION"
    DEMONSTRATION = "DEMONSTRATION"
    COMPETITION = "COMPETITION"
    CULTURAL_TOUR = "CULTURAL_TOUR"
    ONLINE_WEBINAR = "ONLINE_WEBINAR"
    NETWORKING = "NETWORKING"
    FESTIVAL = "FESTIVAL"


class EventStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    REGISTRATION_OPEN = "REGISTRATION_OPEN"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class EventRegistrationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    WAITLISTED = "WAITLISTED"
    CANCELLED = "CANCELLED"
    ATTENDED = "ATTENDED"
    NO_SHOW = "NO_SHOW"


class LearningMaterialType(str, Enum):
    VIDEO = "VIDEO"
    DOCUMENT = "DOCUMENT"
    IMAGE = "IMAGE"
    STEP_BY_STEP = "STEP_BY_STEP"
    QUIZ = "QUIZ"
