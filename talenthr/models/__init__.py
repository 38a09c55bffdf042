from talenthr.models.company import Company
from talenthr.models.employee import Attendance, Department, Employee, EmployeeIdCounter
from talenthr.models.invitation import Invitation
from talenthr.models.leave import LeaveBalance, LeaveRequest, LeaveType
from talenthr.models.marketplace import Category, Feedback, Listing, UserProfile
from talenthr.models.performance import Goal, PerformanceReview
from talenthr.models.recruitment import Candidate, Interview, JobPosting
from talenthr.models.users import OtpCode, User

DOCUMENT_MODELS = [
    Company,
    User,
    OtpCode,
    Employee,
    EmployeeIdCounter,
    Department,
    Attendance,
    LeaveType,
    LeaveBalance,
    LeaveRequest,
    Invitation,
    JobPosting,
    Candidate,
    Interview,
    Goal,
    PerformanceReview,
    Listing,
    Category,
    Feedback,
    UserProfile,
]
