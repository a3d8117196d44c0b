import pytest

from voting import monitoring
from voting.audit import record_action
from voting.models import AdminLog, Role

pytestmark = pytest.mark.django_db


@pytest.fixture
def roster(make_voter):
    return [
        make_voter(name='Siti Aminah', program='S1 Sains Data'),
        make_voter(name='Rudi Hartono', program='S1 Teknik Elektro', has_voted=True),
        make_voter(name='Dewi Lestari', program='S1 Sains Data', has_voted=True),
        make_voter(name='ADMIN', program='S1 Teknik Fisika', role=Role.ADMIN),
    ]


def names(result):
    return sorted(v['name'] for v in result['voters'])


def test_list_voters_unfiltered(roster):
    result = monitoring.list_voters()
    assert result['pagination'] == {'page': 1, 'limit': 10, 'total': 4, 'totalPages': 1}
    assert result['programs'] == ['S1 Sains Data', 'S1 Teknik Elektro', 'S1 Teknik Fisika']


def test_search_is_case_insensitive(roster):
    assert names(monitoring.list_voters(search='sains')) == ['Dewi Lestari', 'Siti Aminah']
    assert names(monitoring.list_voters(search=roster[1].registration_number)) == ['Rudi Hartono']


def test_filters(roster):
    assert names(monitoring.list_voters(status='voted')) == ['Dewi Lestari', 'Rudi Hartono']
    assert names(monitoring.list_voters(status='not_voted', role=Role.VOTER)) == ['Siti Aminah']
    assert names(monitoring.list_voters(role=Role.ADMIN)) == ['ADMIN']
    assert names(monitoring.list_voters(program='elektro')) == ['Rudi Hartono']
    assert len(monitoring.list_voters(role='all', status='all')['voters']) == 4


def test_pagination(roster):
    first = monitoring.list_voters(page=1, limit=3)
    second = monitoring.list_voters(page=2, limit=3)
    assert first['pagination']['totalPages'] == 2
    assert len(first['voters']) == 3
    assert len(second['voters']) == 1
    seen = {v['id'] for v in first['voters']} | {v['id'] for v in second['voters']}
    assert len(seen) == 4


def test_program_list_skips_blank(make_voter):
    make_voter(program='')
    make_voter(program='S1 Fisika')
    make_voter(program='S1 Fisika')
    assert monitoring.program_list() == ['S1 Fisika']


def test_recent_logs_limit_and_order(admin):
    for i in range(4):
        record_action('VALIDATE_SESSION', actor=admin, target=f'CODE000{i}')
    logs = monitoring.recent_logs(limit=2)
    assert [log['target'] for log in logs] == ['CODE0003', 'CODE0002']
    assert logs[0]['actor']['role'] == 'ADMIN'


def test_recent_logs_default_limit(settings):
    settings.MONITORING_RECENT_LIMIT = 3
    for i in range(5):
        record_action('CAST_VOTE', target=f'C{i}')
    logs = monitoring.recent_logs()
    assert len(logs) == 3
    assert logs[0]['actor'] is None


def test_recent_validations(issuer, validator, admin, make_voter):
    first = make_voter(name='First')
    second = make_voter(name='Second')
    issuer.issue(make_voter(name='Never validated').pk)
    validator.validate(issuer.issue(first.pk).redeem_code, admin.pk)
    validator.validate(issuer.issue(second.pk).redeem_code, admin.pk)

    rows = monitoring.recent_validations()
    assert [r['voter']['name'] for r in rows] == ['Second', 'First']
    assert rows[0]['validator'] == {'name': 'ADMIN', 'role': 'ADMIN'}


def test_active_candidates(candidates, make_candidate):
    make_candidate(name='Withdrawn', is_active=False)
    assert [c['name'] for c in monitoring.active_candidates()] == ['Ahmad Rizky', 'Kevin Andriano']


def test_admin_log_is_append_only(admin):
    log = record_action('VALIDATE_SESSION', actor=admin, target='AB12CD34')
    log.target = 'tampered'
    with pytest.raises(ValueError):
        log.save()
    assert AdminLog.objects.get().target == 'AB12CD34'
