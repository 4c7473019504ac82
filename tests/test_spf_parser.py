from exposure_scan.modules.email_spoofing import parse_spf


def test_spf_hardfail_is_strict():
    record, strict = parse_spf(["v=spf1 include:_spf.example.com -all"])
    assert record == "v=spf1 include:_spf.example.com -all"
    assert strict is True


def test_spf_softfail_not_strict():
    record, strict = parse_spf(["v=spf1 include:_spf.example.com ~all"])
    assert record is not None
    assert strict is False


def test_spf_missing():
    record, strict = parse_spf(["some text", "v=DMARC1; p=none"])
    assert record is None
    assert strict is False


def test_spf_picks_first_spf_record():
    record, _ = parse_spf(["verification=1", "v=spf1 mx ?all", "v=spf1 -all"])
    assert record == "v=spf1 mx ?all"
