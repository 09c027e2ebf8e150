"""QR payload rendering."""

import base64
from datetime import datetime
from io import BytesIO

from PIL import Image

from museumtix.qr import QR_SIZE, build_qr_payload, generate_qr_code_data


class TestQrCode:
    def test_payload_fields(self):
        payload = build_qr_payload(5, 2, 1, 3, datetime(2024, 5, 1, 10, 0), True)
        assert payload["ticketId"] == "5"
        assert payload["userId"] == "2"
        assert payload["ticketTypeId"] == "1"
        assert payload["quantity"] == 3
        assert payload["visitDate"] == "2024-05-01T10:00:00"
        assert payload["isPaid"] is True
        assert "issuedAt" in payload

    def test_data_url_is_png(self):
        """The data URL decodes to a square PNG image."""
        data_url = generate_qr_code_data(5, 2, 1, 3, datetime(2024, 5, 1), True)
        prefix = "data:image/png;base64,"
        assert data_url.startswith(prefix)

        image = Image.open(BytesIO(base64.b64decode(data_url[len(prefix):])))
        assert image.format == "PNG"
        assert image.size == (QR_SIZE, QR_SIZE)
