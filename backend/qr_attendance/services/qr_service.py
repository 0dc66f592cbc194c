"""QR code payload and image service."""
import qrcode
import io
import base64
import json
from datetime import datetime
from typing import Optional

class QRService:
    """Service for QR code operations."""

    @staticmethod
    def build_payload(lecture, issued_at: Optional[datetime] = None) -> str:
        """
        Build the JSON payload printed into a lecture's QR code.
        Only ``lectureId`` is read back when the code is scanned.
        """
        issued_at = issued_at or datetime.utcnow()
        qr_data = {
            'lectureId': lecture.id,
            'timestamp': issued_at.isoformat(),
            'title': lecture.title,
            'course': lecture.course.name if lecture.course else None
        }
        return json.dumps(qr_data, separators=(',', ':'))

    @staticmethod
    def render_png(payload: str, box_size: int = 10, border: int = 2) -> str:
        """Render a payload as a base64 PNG data URL."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=border,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"
