from scripts import diagnose_data_leak
from scripts.diagnose_data_leak import diagnose


async def test_clean_database(session, make_org, make_user, add_forecast):
    org = await make_org()
    user = await make_user(org=org)
    await add_forecast(org, user)

    report = await diagnose(session)

    assert report.has_leaks is False
    [entry] = report.organizations
    assert entry.counts == {
        "members": 1,
        "parties": 1,
        "locations": 2,
        "demand_forecasts": 1,
        "supply_commitments": 1,
    }
    assert set(report.cross_org_references.values()) == {0}


async def test_cross_org_party_reference(session, make_org, make_user, add_forecast):
    acme = await make_org("Acme Logistics")
    globex = await make_org("Globex Freight")
    user = await make_user(org=acme)
    await add_forecast(acme, user, party_org=globex)

    report = await diagnose(session)

    assert report.has_leaks is True
    assert report.cross_org_references["demand_forecasts.party_id"] == 1
    assert report.cross_org_references["supply_commitments.party_id"] == 1
    assert report.cross_org_references["demand_forecasts.pickup_location_id"] == 0


async def test_membership_problems(session, make_org, make_user):
    acme = await make_org("Acme Logistics")
    globex = await make_org("Globex Freight")
    await make_user("loner@acme.com")
    drifted = await make_user("drifted@acme.com", org=acme)
    drifted.current_org_id = globex.id
    session.add(drifted)
    await session.commit()

    report = await diagnose(session)

    assert [u.email for u in report.users_without_membership] == ["loner@acme.com"]
    assert [u.email for u in report.current_org_mismatches] == ["drifted@acme.com"]
    assert report.has_leaks is True


async def test_run_exit_code(capsys, use_session, make_org, make_user):
    await make_user(org=await make_org())
    use_session(diagnose_data_leak)

    assert await diagnose_data_leak.run(None) == 0

    out = capsys.readouterr().out
    assert "CROSS-ORGANIZATION REFERENCES" in out
    assert "All users have consistent memberships" in out
