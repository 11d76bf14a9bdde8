"""Exceptions raised by the form engine and its collaborators.

Validation and classification never raise; these cover the operations that
address a specific form, field or stored file.
"""


class FormEngineError(Exception):
    """Base class for every error raised by the form engine."""


class FieldNotFoundError(FormEngineError):
    def __init__(self, field_id: str):
        self.field_id = field_id
        super().__init__(f"Field {field_id} not found")


class FormNotFoundError(FormEngineError):
    def __init__(self, form_id: str):
        self.form_id = form_id
        super().__init__(f"Form {form_id} not found")


class ApplicationNotFoundError(FormEngineError):
    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__(f"Application {application_id} not found")


class InvalidFormError(FormEngineError):
    pass


class FileStorageError(FormEngineError):
    pass
