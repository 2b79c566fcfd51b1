"""
Tests for the hit log and view statistics

Focus areas:
1. Aggregation correctness (raw vs unique counts, inclusive range)
2. URI filter semantics (absent vs empty)
3. Deterministic ordering
4. HTTP contract of POST /hit and GET /stats
"""

from datetime import datetime, timezone as dt_timezone

from django.test import TestCase
from rest_framework.test import APITestCase

from ewmstats.errors import InvalidRangeError, ValidationFailedError

from .aggregation import get_stats
from .models import EndpointHit
from .services import record_hit


def at(hour, minute=0, second=0):
    return datetime(2024, 1, 10, hour, minute, second, tzinfo=dt_timezone.utc)


class StatsAggregationTestCase(TestCase):
    """
    Test the stats query.

    Fixture:
    - /events/1: 3 hits from 2 IPs
    - /events/2: 2 hits from 2 IPs
    - /events:   1 hit
    - /events/1 from another app: 1 hit
    - one hit on /events/1 outside the range
    """

    def setUp(self):
        self.start = at(10)
        self.end = at(12)

        record_hit('ewm-main-service', '/events/1', '10.0.0.1', at(10))
        record_hit('ewm-main-service', '/events/1', '10.0.0.1', at(11))
        record_hit('ewm-main-service', '/events/1', '10.0.0.2', at(12))
        record_hit('ewm-main-service', '/events/2', '10.0.0.1', at(11))
        record_hit('ewm-main-service', '/events/2', '10.0.0.3', at(11, 30))
        record_hit('ewm-main-service', '/events', '10.0.0.4', at(11))
        record_hit('other-service', '/events/1', '10.0.0.1', at(11))
        # Outside the range by one second
        record_hit('ewm-main-service', '/events/1', '10.0.0.9', at(12, 0, 1))

    def test_raw_counts_per_app_and_uri(self):
        """Without unique, every matching row is counted."""
        stats = get_stats(self.start, self.end)

        by_key = {(s['app'], s['uri']): s['hits'] for s in stats}
        self.assertEqual(by_key, {
            ('ewm-main-service', '/events/1'): 3,
            ('ewm-main-service', '/events/2'): 2,
            ('ewm-main-service', '/events'): 1,
            ('other-service', '/events/1'): 1,
        })

    def test_raw_counts_match_row_count(self):
        stats = get_stats(self.start, self.end)

        in_range = EndpointHit.objects.filter(
            timestamp__gte=self.start, timestamp__lte=self.end
        ).count()
        self.assertEqual(sum(s['hits'] for s in stats), in_range)

    def test_unique_counts_distinct_ips(self):
        """/events/1 has 3 hits but only 2 distinct IPs."""
        stats = get_stats(self.start, self.end, unique=True)

        by_key = {(s['app'], s['uri']): s['hits'] for s in stats}
        self.assertEqual(by_key[('ewm-main-service', '/events/1')], 2)
        self.assertEqual(by_key[('ewm-main-service', '/events/2')], 2)

    def test_range_is_inclusive(self):
        """Hits exactly at start and at end are counted."""
        stats = get_stats(at(10), at(10), uris=['/events/1'])
        self.assertEqual(stats, [{'app': 'ewm-main-service', 'uri': '/events/1', 'hits': 1}])

        stats = get_stats(at(12), at(12), uris=['/events/1'])
        self.assertEqual(stats, [{'app': 'ewm-main-service', 'uri': '/events/1', 'hits': 1}])

    def test_sorted_by_hits_descending(self):
        stats = get_stats(self.start, self.end)

        hits = [s['hits'] for s in stats]
        self.assertEqual(hits, sorted(hits, reverse=True))

    def test_ties_broken_by_app_then_uri(self):
        stats = get_stats(self.start, self.end)

        ones = [(s['app'], s['uri']) for s in stats if s['hits'] == 1]
        self.assertEqual(ones, [
            ('ewm-main-service', '/events'),
            ('other-service', '/events/1'),
        ])

    def test_uri_filter(self):
        stats = get_stats(self.start, self.end, uris=['/events/2'])

        self.assertEqual(stats, [{'app': 'ewm-main-service', 'uri': '/events/2', 'hits': 2}])

    def test_absent_filter_returns_all(self):
        self.assertEqual(len(get_stats(self.start, self.end, uris=None)), 4)

    def test_empty_filter_returns_nothing(self):
        """An explicit empty URI list is not the same as no filter."""
        self.assertEqual(get_stats(self.start, self.end, uris=[]), [])

    def test_unknown_uri_returns_nothing(self):
        self.assertEqual(get_stats(self.start, self.end, uris=['/nope']), [])

    def test_start_after_end_raises(self):
        with self.assertRaises(InvalidRangeError):
            get_stats(self.end, self.start)

    def test_empty_log(self):
        EndpointHit.objects.all().delete()
        self.assertEqual(get_stats(self.start, self.end), [])


class HitRecordingTestCase(TestCase):
    """Test the append-only hit log."""

    def test_record_hit_creates_row(self):
        hit = record_hit('ewm-main-service', '/events/1', '10.0.0.1', at(10))

        self.assertEqual(EndpointHit.objects.count(), 1)
        self.assertEqual(hit.app, 'ewm-main-service')
        self.assertEqual(hit.timestamp, at(10))

    def test_duplicates_are_kept(self):
        """The same hit submitted twice is stored twice."""
        record_hit('ewm-main-service', '/events/1', '10.0.0.1', at(10))
        record_hit('ewm-main-service', '/events/1', '10.0.0.1', at(10))

        self.assertEqual(EndpointHit.objects.count(), 2)

    def test_blank_fields_rejected(self):
        for app, uri, ip in [('', '/a', '1.1.1.1'), ('app', '  ', '1.1.1.1'), ('app', '/a', None)]:
            with self.assertRaises(ValidationFailedError):
                record_hit(app, uri, ip, at(10))

        self.assertEqual(EndpointHit.objects.count(), 0)

    def test_missing_timestamp_rejected(self):
        with self.assertRaises(ValidationFailedError):
            record_hit('app', '/a', '1.1.1.1', None)


class HitApiTestCase(APITestCase):
    """HTTP contract of POST /hit and GET /stats."""

    def test_post_hit_returns_201(self):
        response = self.client.post('/hit', {
            'app': 'ewm-main-service',
            'uri': '/events/1',
            'ip': '192.163.0.1',
            'timestamp': '2024-01-10 11:00:23',
        })

        self.assertEqual(response.status_code, 201)
        hit = EndpointHit.objects.get()
        self.assertEqual(hit.timestamp, at(11, 0, 23))

    def test_post_hit_with_blank_field_returns_400(self):
        response = self.client.post('/hit', {
            'app': '',
            'uri': '/events/1',
            'ip': '192.163.0.1',
            'timestamp': '2024-01-10 11:00:23',
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['message'], 'Validation failed')
        self.assertEqual(response.data['status'], 'BAD_REQUEST')
        self.assertTrue(any(e.startswith('app:') for e in response.data['errors']))
        self.assertEqual(EndpointHit.objects.count(), 0)

    def test_post_hit_with_bad_timestamp_returns_400(self):
        response = self.client.post('/hit', {
            'app': 'ewm-main-service',
            'uri': '/events/1',
            'ip': '192.163.0.1',
            'timestamp': '10/01/2024',
        })

        self.assertEqual(response.status_code, 400)
        self.assertTrue(any(e.startswith('timestamp:') for e in response.data['errors']))

    def test_get_stats(self):
        record_hit('ewm-main-service', '/events/1', '10.0.0.1', at(10))
        record_hit('ewm-main-service', '/events/1', '10.0.0.1', at(11))
        record_hit('ewm-main-service', '/events/2', '10.0.0.2', at(11))

        response = self.client.get('/stats', {
            'start': '2024-01-10 00:00:00',
            'end': '2024-01-10 23:59:59',
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [
            {'app': 'ewm-main-service', 'uri': '/events/1', 'hits': 2},
            {'app': 'ewm-main-service', 'uri': '/events/2', 'hits': 1},
        ])

    def test_get_stats_unique(self):
        record_hit('ewm-main-service', '/events/1', '10.0.0.1', at(10))
        record_hit('ewm-main-service', '/events/1', '10.0.0.1', at(11))

        response = self.client.get('/stats', {
            'start': '2024-01-10 00:00:00',
            'end': '2024-01-10 23:59:59',
            'unique': 'true',
        })

        self.assertEqual(response.json(), [
            {'app': 'ewm-main-service', 'uri': '/events/1', 'hits': 1},
        ])

    def test_get_stats_repeated_and_comma_separated_uris(self):
        record_hit('ewm-main-service', '/events/1', '10.0.0.1', at(10))
        record_hit('ewm-main-service', '/events/2', '10.0.0.1', at(10))
        record_hit('ewm-main-service', '/events/3', '10.0.0.1', at(10))
        params = 'start=2024-01-10%2000:00:00&end=2024-01-10%2023:59:59'

        repeated = self.client.get(f'/stats?{params}&uris=/events/1&uris=/events/2')
        comma = self.client.get(f'/stats?{params}&uris=/events/1,/events/2')

        expected = {'/events/1', '/events/2'}
        self.assertEqual({s['uri'] for s in repeated.json()}, expected)
        self.assertEqual({s['uri'] for s in comma.json()}, expected)

    def test_get_stats_start_after_end_returns_400(self):
        response = self.client.get('/stats', {
            'start': '2024-01-11 00:00:00',
            'end': '2024-01-10 00:00:00',
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.data)

    def test_get_stats_missing_start_returns_400(self):
        response = self.client.get('/stats', {'end': '2024-01-10 00:00:00'})

        self.assertEqual(response.status_code, 400)
        self.assertTrue(any(e.startswith('start:') for e in response.data['errors']))
