"""
Agreement PDF rendering tests
"""
from datetime import date, datetime, timezone

import pytest
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from agreement_pdf import (
    agreement_filename,
    agreement_reference,
    clip_lines,
    decode_data_uri,
    format_agreement_date,
    generate_agreement_pdf,
    render_agreement_pdf,
    wrap_lines,
)

GENERATED_AT = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def agreement_data():
    return {
        'pickup_request_id': '3f2a9c1e-5b7d-4e21-9a0f-1c2d3e4f5a6b',
        'user_name': 'Jane Wanjiku',
        'company_name': 'GreenCycle Ltd',
        'waste_type': 'recyclable',
        'waste_description': 'Plastic bottles and cardboard boxes',
        'location': 'Westlands, Nairobi',
        'preferred_date': '2026-03-04',
        'preferred_time': 'morning',
        'created_at': datetime(2026, 3, 1, 8, 0),
        'user_signature': None,
        'company_signature': None,
    }


class TestRendering:
    """Test the PDF bytes"""

    def test_renders_pdf(self, agreement_data):
        pdf = render_agreement_pdf(agreement_data, generated_at=GENERATED_AT)
        assert pdf.startswith(b'%PDF')
        assert pdf.rstrip().endswith(b'%%EOF')

    def test_rendering_is_deterministic(self, agreement_data):
        first = render_agreement_pdf(agreement_data, generated_at=GENERATED_AT)
        second = render_agreement_pdf(dict(agreement_data), generated_at=GENERATED_AT)
        assert first == second

    def test_signatures_change_output(self, agreement_data):
        unsigned = render_agreement_pdf(agreement_data, generated_at=GENERATED_AT)
        signed = render_agreement_pdf(dict(agreement_data, user_signature='Jane Wanjiku'),
                                      generated_at=GENERATED_AT)
        assert unsigned != signed

    def test_missing_description(self, agreement_data):
        agreement_data['waste_description'] = None
        assert render_agreement_pdf(agreement_data, generated_at=GENERATED_AT).startswith(b'%PDF')

    def test_long_description_wraps(self):
        lines = wrap_lines('word ' * 80, 'Helvetica', 10, 200)
        assert len(lines) > 1
        assert wrap_lines('', 'Helvetica', 10, 200) == ['']

    def test_clip_lines_adds_ellipsis(self):
        lines = clip_lines('word ' * 200, 'Helvetica', 10, 200, 3)
        assert len(lines) == 3
        assert lines[-1].endswith('\u2026')
        assert clip_lines('short', 'Helvetica', 10, 200, 3) == ['short']

    def test_signatures_stay_above_footer(self, agreement_data, monkeypatch):
        drawn = {}
        original = canvas.Canvas.drawString

        def record(self, x, y, text, *args, **kwargs):
            drawn[text] = y
            return original(self, x, y, text, *args, **kwargs)

        monkeypatch.setattr(canvas.Canvas, 'drawString', record)
        agreement_data.update(
            waste_type='W' * 50,
            waste_description='Mixed plastics and cardboard ' * 18,
            location='Plot 7, Ngong Road, Nairobi ' * 10,
            user_signature='Jane Wanjiku',
            company_signature='Peter Kamau',
        )
        agreement_data['waste_description'] = agreement_data['waste_description'][:500]
        agreement_data['location'] = agreement_data['location'][:255]

        render_agreement_pdf(agreement_data, generated_at=GENERATED_AT)

        for text in ('SIGNATURES:', 'Client Signature', 'Company Signature', 'Jane Wanjiku', 'Peter Kamau'):
            assert drawn[text] > 20 * mm


class TestDataUri:
    """Test the chat attachment encoding"""

    def test_data_uri_round_trip(self, agreement_data):
        uri = generate_agreement_pdf(agreement_data, generated_at=GENERATED_AT)
        assert uri.startswith('data:application/pdf;base64,')
        assert decode_data_uri(uri) == render_agreement_pdf(agreement_data, generated_at=GENERATED_AT)

    def test_rejects_other_data_uris(self):
        with pytest.raises(ValueError):
            decode_data_uri('data:image/png;base64,iVBORw0KGgo=')
        with pytest.raises(ValueError):
            decode_data_uri('https://example.com/agreement.pdf')


class TestLabels:
    """Test reference, filename and date formatting"""

    def test_reference_and_filename(self):
        assert agreement_reference('3f2a9c1e-5b7d') == '3F2A9C1E'
        assert agreement_filename('3f2a9c1e-5b7d') == 'agreement-3f2a9c1e.pdf'

    def test_format_dates(self):
        assert format_agreement_date(date(2026, 3, 1)) == '1 March 2026'
        assert format_agreement_date(datetime(2026, 12, 25, 14, 0)) == '25 December 2026'
        assert format_agreement_date('2026-03-01T10:00:00Z') == '1 March 2026'
        assert format_agreement_date(None) == ''
        assert format_agreement_date('soon') == 'soon'
