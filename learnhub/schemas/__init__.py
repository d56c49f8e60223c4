from learnhub.schemas.auth import (
    LoginSchema,
    PasswordCheckOutSchema,
    PasswordCheckSchema,
    SignupSchema,
    UserAdminOutSchema,
    UserOutSchema,
)
from learnhub.schemas.progress import ProgressSummarySchema
from learnhub.schemas.submission import SubmissionOutSchema, SubmissionUpdateSchema

__all__ = [
    "LoginSchema",
    "PasswordCheckOutSchema",
    "PasswordCheckSchema",
    "ProgressSummarySchema",
    "SignupSchema",
    "SubmissionOutSchema",
    "SubmissionUpdateSchema",
    "UserAdminOutSchema",
    "UserOutSchema",
]
