"""
JSON input sanitization tests
"""
from sanitize import sanitize_dict


class TestSanitizeDict:
    """Test which JSON strings are escaped on the way in"""

    def test_markup_escaped_in_other_fields(self):
        data = sanitize_dict({'status': '<b>accepted</b>', 'tags': ['a&b']})
        assert data == {'status': '&lt;b&gt;accepted&lt;/b&gt;', 'tags': ['a&amp;b']}

    def test_plain_text_fields_untouched(self):
        body = {
            'signature_name': "Mary O'Brien & Sons",
            'waste_description': 'a&b' * 3,
            'location': 'Tom & Sons, Gikomba',
            'message': '<3 thanks',
        }
        assert sanitize_dict(body) == body

    def test_opaque_payloads_untouched(self):
        image = 'data:image/png;base64,iVBORw0KGgo+/='
        assert sanitize_dict({'imageBase64': image}) == {'imageBase64': image}

    def test_non_strings_pass_through(self):
        assert sanitize_dict({'company_id': 1, 'points': 2.5, 'ok': True, 'x': None}) == \
            {'company_id': 1, 'points': 2.5, 'ok': True, 'x': None}
