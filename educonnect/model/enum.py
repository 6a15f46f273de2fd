import enum


class DeploymentEnvironment(enum.Enum):
    Production = "production"
    Development = "development"
    Staging = "staging"
    Sandbox = "sandbox"
    Test = "test"
    Local = "local"


class UserRole(enum.Enum):
    Admin = "admin"
    Teacher = "teacher"
    Student = "student"
    Parent = "parent"


class RoomType(enum.Enum):
    Standard = "standard"
    Lab = "lab"
    Computer = "computer"
    Auditorium = "auditorium"
    Gym = "gym"
    Library = "library"


class ComponentType(enum.Enum):
    Regular = "regular"
    Regular1 = "regular_1"
    Regular2 = "regular_2"
    Regular3 = "regular_3"
    Regular4 = "regular_4"
    Midterm = "midterm"
    Final = "final"

    @property
    def requires_approval(self) -> bool:
        """Exam components only change through an admin-approved audit."""
        return self in (ComponentType.Midterm, ComponentType.Final)

    @property
    def is_regular(self) -> bool:
        return not self.requires_approval


class AuditStatus(enum.Enum):
    Pending = "pending"
    Approved = "approved"
    Rejected = "rejected"


class LeaveType(enum.Enum):
    Sick = "sick"
    Family = "family"
    Emergency = "emergency"
    Vacation = "vacation"
    Other = "other"


class LeaveStatus(enum.Enum):
    Pending = "pending"
    Approved = "approved"
    Rejected = "rejected"
