from flask import current_app
from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileSize, MultipleFileField
from wtforms import StringField
from wtforms.validators import Optional


def upload_validators(max_file_size, supported_formats):
    """Per-file type and size checks for the configured upload limits."""
    max_size_mb = max_file_size / (1024 * 1024)
    return [
        FileAllowed([ext.lstrip(".") for ext in supported_formats], "Unsupported file format"),
        FileSize(
            max_size=max_file_size,
            message=f"Each file must be at most {max_size_mb:g} MB",
        ),
    ]


class PaperUploadForm(FlaskForm):
    """Multipart upload of one or more answer papers."""

    class Meta:
        # Bearer-token API, no browser session to protect
        csrf = False

    files = MultipleFileField("Answer Papers")
    subject = StringField("Subject", validators=[Optional()])
    totalMarks = StringField("Total Marks", validators=[Optional()])
    sections = StringField("Sections", validators=[Optional()])
    gradingSettings = StringField("Grading Settings", validators=[Optional()])
    userId = StringField("User", validators=[Optional()])
    studentId = StringField("Student", validators=[Optional()])

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Limits come from the running app's configuration
        self.files.validators = upload_validators(
            current_app.config["MAX_FILE_SIZE"], current_app.config["SUPPORTED_FORMATS"]
        )

    def selected_files(self):
        """Uploaded files, ignoring empty file inputs."""
        return [f for f in (self.files.data or []) if f and f.filename]

    def first_error(self) -> str:
        for errors in self.errors.values():
            if errors:
                return errors[0]
        return "Invalid upload"
