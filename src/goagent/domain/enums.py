"""Domain enumerations for GoAgent.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
Values match the upper-case wire strings the dashboards already consume.
"""

from enum import Enum


class UserRole(str, Enum):
    """Account role. Fixed at signup."""

    ADMIN = "ADMIN"
    AGENT = "AGENT"


class SubmissionStatus(str, Enum):
    """Review status of a drive submission."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"
    REJECTED = "REJECTED"


class Verdict(str, Enum):
    """Authenticity label returned by the verification oracle."""

    AUTHENTIC = "AUTHENTIC"
    SUSPICIOUS = "SUSPICIOUS"
    INCONCLUSIVE = "INCONCLUSIVE"


class AgentStatus(str, Enum):
    """Employment relationship of the reporting agent."""

    IN_HOUSE = "In-house"
    FREELANCE = "Freelance"


class PropertyCategory(str, Enum):
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"


class ManagementType(str, Enum):
    INDIVIDUAL = "Individual"
    COMPANY = "Company"


class InterestLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class SubmissionScope(str, Enum):
    """Which submissions a listing query returns."""

    ALL = "all"
    BY_AGENT = "by_agent"


class PreferenceKey(str, Enum):
    """Keys of the per-user form preference lists."""

    FEATURE_OPTIONS = "feature_options"
    QUICK_FEEDBACKS = "quick_feedbacks"
