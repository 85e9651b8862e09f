from app.schemas.projects import (
    SubmitProjectRequest,
    SubmitProjectResponse,
    TransitionRequest,
    AssignWriterRequest,
    AdjustPriceRequest,
    EstimatedCompletionRequest,
    NoteRequest,
    ResubmitRequest,
)
from app.schemas.tracking import VerifyPinRequest, VerifyPinResponse, PublicTrackingView, FullTrackingView
from app.schemas.requirements import PackageField
from app.schemas.clients import RegisterClientRequest, ReferralCodeCheck
