"""
Dashboard and site content tests
"""
import json

from models import db, WasteAnalysis, PointsTransaction


class TestDashboard:
    """Test GET /api/dashboard"""

    def test_requires_auth(self, client):
        response = client.get('/api/dashboard')
        assert response.status_code == 401

    def test_producer_summary(self, client, auth_headers, producer, make_pickup):
        make_pickup()
        make_pickup()
        make_pickup(status='completed')
        db.session.add(WasteAnalysis(
            user_id=producer.id,
            summary='A glass jar',
            items=[{'item': 'Glass jar', 'type': 'recyclable', 'confidence': 91}],
        ))
        db.session.add(PointsTransaction(user_id=producer.id, amount=60, type='earned'))
        db.session.commit()

        response = client.get('/api/dashboard', headers=auth_headers)

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['summary'] == {
            'waste_uploads': 1,
            'pending_pickups': 2,
            'completed_orders': 1,
            'points_balance': 60,
        }
        assert data['recent_analyses'][0]['item'] == 'Glass jar'
        assert data['recent_analyses'][0]['confidence'] == 91
        assert len(data['recent_pickups']) == 3
        assert [c['location'] for c in data['nearby_companies']] == ['Nairobi', 'Nairobi', 'Nairobi']

    def test_company_summary(self, client, company_headers, make_pickup):
        make_pickup()
        make_pickup(company_id=3, company_name='CleanCity Recyclers')

        response = client.get('/api/dashboard', headers=company_headers)

        data = json.loads(response.data)
        assert data['summary']['pending_pickups'] == 1


class TestSite:
    """Test site-level endpoints"""

    def test_health(self, client):
        response = client.get('/api/health')

        assert response.status_code == 200
        assert json.loads(response.data)['status'] == 'healthy'

    def test_request_id_header(self, client):
        response = client.get('/api/health', headers={'X-Request-ID': 'trace-123'})
        assert response.headers['X-Request-ID'] == 'trace-123'

        response = client.get('/api/health')
        assert response.headers['X-Request-ID']

    def test_security_headers(self, client):
        response = client.get('/api/health')
        assert response.headers['X-Content-Type-Options'] == 'nosniff'
        assert response.headers['X-Frame-Options'] == 'DENY'

    def test_navigation(self, client):
        response = client.get('/api/site/navigation')

        data = json.loads(response.data)
        assert [n['path'] for n in data['nav_items']] == ['/', '/about', '/companies', '/points', '/contact']
        protected = {p['path'] for p in data['pages'] if p['requires_auth']}
        assert protected == {'/points', '/dashboard', '/chat'}

    def test_stats(self, client):
        response = client.get('/api/site/stats')

        stats = json.loads(response.data)['stats']
        assert stats['partner_companies'] == 6
        assert stats['verified_companies'] == 5
        assert stats['waste_analyses'] == 0

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/nope')

        assert response.status_code == 404
        assert 'error' in json.loads(response.data)
