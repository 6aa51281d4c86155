# server/errors.py
"""
Domain errors for the lesson planner backend.

Every error carries a ``user_message`` that is safe to show in the UI.
The underlying cause (provider exceptions, OS errors, bad JSON) is only
ever printed for diagnostics.
"""


class PlannerError(Exception):
    """Base class; ``user_message`` is what the UI displays."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, user_message: str | None = None):
        if user_message:
            self.user_message = user_message
        super().__init__(self.user_message)


class InputValidationError(PlannerError):
    user_message = "Please fill in the class, subject and date range."


class MissingAttachmentError(PlannerError):
    user_message = "Please upload a syllabus file."


class FileReadError(PlannerError):
    user_message = "The syllabus file could not be read. Please choose it again."


class GenerationFailedError(PlannerError):
    user_message = (
        "Failed to generate lesson plan. The AI model might be overloaded "
        "or the syllabus file could not be processed. Please try again."
    )


class StorageUnavailableError(PlannerError):
    user_message = "Could not save to local storage. Your latest change may not persist."
