import base64
import json
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, Optional

import qrcode
from qrcode import constants
from PIL import Image

QR_SIZE = 300
QR_BORDER = 4


def build_qr_payload(
    ticket_id: Any,
    user_id: Any,
    ticket_type_id: Any,
    quantity: int,
    visit_date: Optional[datetime],
    is_paid: bool
) -> Dict[str, Any]:
    """Data encoded into a ticket's entry code"""
    return {
        "ticketId": str(ticket_id),
        "userId": str(user_id),
        "ticketTypeId": str(ticket_type_id),
        "quantity": quantity,
        "visitDate": visit_date.isoformat() if visit_date else None,
        "isPaid": is_paid,
        "issuedAt": datetime.utcnow().isoformat(),
    }


def render_qr_data_url(payload: Dict[str, Any]) -> str:
    """Render a payload as a PNG QR code and return it as a data URL"""
    qr = qrcode.QRCode(
        version=1,
        error_correction=constants.ERROR_CORRECT_M,
        box_size=10,
        border=QR_BORDER,
    )
    qr.add_data(json.dumps(payload, separators=(",", ":")))
    qr.make(fit=True)
    
    qr_image = qr.make_image(fill_color="black", back_color="white")
    qr_image = qr_image.resize((QR_SIZE, QR_SIZE), Image.LANCZOS)
    
    buffer = BytesIO()
    qr_image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def generate_qr_code_data(
    ticket_id: Any,
    user_id: Any,
    ticket_type_id: Any,
    quantity: int,
    visit_date: Optional[datetime],
    is_paid: bool
) -> str:
    payload = build_qr_payload(ticket_id, user_id, ticket_type_id, quantity, visit_date, is_paid)
    return render_qr_data_url(payload)

