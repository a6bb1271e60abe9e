"""
AI waste analysis tests for Nexo Greencycle
The gateway is replaced by a fake ``requests.post``
"""
import json

import pytest
import requests

import classifier
from models import WasteAnalysis

IMAGE = 'data:image/jpeg;base64,/9j/4AAQSkZJRgABAQAAAQABAAD/2wBDAAgGBgcG'

RESULT = {
    'items': [
        {
            'item': 'PET bottle',
            'type': 'recyclable',
            'confidence': 94,
            'recommendation': 'Rinse and drop at a plastics collection point.',
            'environmental_impact': 'Takes up to 450 years to break down in landfill.',
        },
        {
            'item': 'Banana peel',
            'type': 'organic',
            'confidence': 88,
            'recommendation': 'Compost it.',
            'environmental_impact': 'Produces methane in landfill.',
        },
    ],
    'summary': 'One recyclable bottle and some organic waste.',
}


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=''):
        self.status_code = status_code
        self._body = body
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError('No JSON object could be decoded')
        return self._body


def _tool_call_body(arguments):
    return {
        'choices': [{
            'message': {
                'tool_calls': [{
                    'type': 'function',
                    'function': {'name': 'classify_waste', 'arguments': arguments},
                }],
            },
        }],
    }


@pytest.fixture
def gateway(monkeypatch):
    """Install a fake gateway; returns the list of captured calls"""
    calls = []
    state = {'response': FakeResponse(200, _tool_call_body(json.dumps(RESULT)))}

    def fake_post(url, **kwargs):
        calls.append({'url': url, **kwargs})
        response = state['response']
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(classifier.requests, 'post', fake_post)

    class Gateway:
        def respond(self, response):
            state['response'] = response

    gw = Gateway()
    gw.calls = calls
    return gw


class TestAnalyzeWaste:
    """Test POST /api/analyze-waste"""

    def test_success_relays_result(self, client, gateway):
        response = client.post('/api/analyze-waste', json={'imageBase64': IMAGE})

        assert response.status_code == 200
        assert json.loads(response.data) == RESULT

    def test_gateway_request_shape(self, client, app, gateway):
        client.post('/api/analyze-waste', json={'imageBase64': IMAGE})

        call = gateway.calls[0]
        assert call['url'] == app.config['AI_GATEWAY_URL']
        assert call['headers']['Authorization'] == 'Bearer test-gateway-key'
        payload = call['json']
        assert payload['model'] == app.config['AI_MODEL']
        assert payload['tools'][0]['function']['name'] == 'classify_waste'
        assert payload['tool_choice'] == {'type': 'function', 'function': {'name': 'classify_waste'}}
        assert payload['messages'][1]['content'][1]['image_url']['url'] == IMAGE

    def test_missing_image(self, client, gateway):
        response = client.post('/api/analyze-waste', json={})

        assert response.status_code == 400
        assert json.loads(response.data)['error'] == 'imageBase64 is required'
        assert gateway.calls == []

    def test_rate_limited(self, client, gateway):
        gateway.respond(FakeResponse(429, text='slow down'))
        response = client.post('/api/analyze-waste', json={'imageBase64': IMAGE})

        assert response.status_code == 429
        assert json.loads(response.data)['error'] == 'Rate limit exceeded. Please try again shortly.'

    def test_credits_exhausted(self, client, gateway):
        gateway.respond(FakeResponse(402, text='payment required'))
        response = client.post('/api/analyze-waste', json={'imageBase64': IMAGE})

        assert response.status_code == 402
        assert json.loads(response.data)['error'] == 'AI credits exhausted. Please add funds.'

    def test_upstream_error(self, client, gateway):
        gateway.respond(FakeResponse(503, text='unavailable'))
        response = client.post('/api/analyze-waste', json={'imageBase64': IMAGE})

        assert response.status_code == 500
        assert json.loads(response.data)['error'] == 'AI analysis failed'

    def test_network_error(self, client, gateway):
        gateway.respond(requests.ConnectionError('connection refused'))
        response = client.post('/api/analyze-waste', json={'imageBase64': IMAGE})

        assert response.status_code == 500
        assert json.loads(response.data)['error'] == 'AI analysis failed'

    def test_no_tool_call(self, client, gateway):
        gateway.respond(FakeResponse(200, {'choices': [{'message': {'content': 'A bottle.'}}]}))
        response = client.post('/api/analyze-waste', json={'imageBase64': IMAGE})

        assert response.status_code == 500
        assert json.loads(response.data)['error'] == 'AI did not return structured results'

    def test_malformed_tool_arguments(self, client, gateway):
        gateway.respond(FakeResponse(200, _tool_call_body('{not json')))
        response = client.post('/api/analyze-waste', json={'imageBase64': IMAGE})

        assert response.status_code == 500
        assert json.loads(response.data)['error'] == 'AI did not return structured results'

    def test_missing_api_key(self, client, app, gateway, monkeypatch):
        monkeypatch.setitem(app.config, 'AI_GATEWAY_API_KEY', None)
        response = client.post('/api/analyze-waste', json={'imageBase64': IMAGE})

        assert response.status_code == 500
        assert json.loads(response.data)['error'] == 'AI_GATEWAY_API_KEY is not configured'
        assert gateway.calls == []

    def test_result_matches_declared_schema(self, client, gateway):
        response = client.post('/api/analyze-waste', json={'imageBase64': IMAGE})
        data = json.loads(response.data)

        assert set(data) == {'items', 'summary'}
        assert data['items']
        for item in data['items']:
            assert set(item) == {'item', 'type', 'confidence', 'recommendation', 'environmental_impact'}
            assert item['type'] in classifier.WASTE_TYPES
            assert 0 <= item['confidence'] <= 100


class TestStoredAnalyses:
    """Signed-in results are kept for the dashboard"""

    def test_anonymous_result_not_stored(self, client, gateway):
        client.post('/api/analyze-waste', json={'imageBase64': IMAGE})
        assert WasteAnalysis.query.count() == 0

    def test_signed_in_result_stored(self, client, auth_headers, producer, gateway):
        client.post('/api/analyze-waste', headers=auth_headers, json={'imageBase64': IMAGE})

        analysis = WasteAnalysis.query.filter_by(user_id=producer.id).one()
        assert analysis.summary == RESULT['summary']
        assert analysis.primary_item['item'] == 'PET bottle'

        response = client.get('/api/analyses', headers=auth_headers)
        analyses = json.loads(response.data)['analyses']
        assert len(analyses) == 1
        assert analyses[0]['items'] == RESULT['items']

    def test_failed_analysis_not_stored(self, client, auth_headers, gateway):
        gateway.respond(FakeResponse(429))
        client.post('/api/analyze-waste', headers=auth_headers, json={'imageBase64': IMAGE})
        assert WasteAnalysis.query.count() == 0
