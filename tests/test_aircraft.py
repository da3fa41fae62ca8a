from depot_tools.aircraft import detect_aircraft_info, detect_operator_info, normalize_model


def test_detect_aircraft_info_boeing():
    info = detect_aircraft_info("Turkish Airlines Boeing   737-800 narrowbody, 737NG fleet")

    assert info.model == "Boeing 737-800"
    assert info.family == "BOEING"
    assert info.type_code == "737NG"
    assert info.body_type == "NARROW BODY"


def test_detect_aircraft_info_airbus_short_form():
    info = detect_aircraft_info("Wide body fleet: a321-200 delivered")

    assert info.model == "Airbus A321-200"
    assert info.family == "AIRBUS"
    assert info.type_code == "A321"
    assert info.body_type == "WIDE BODY"


def test_detect_aircraft_info_without_matches():
    assert detect_aircraft_info(None).as_dict() == {
        "model": None,
        "family": None,
        "typeCode": None,
        "bodyType": None,
    }


def test_normalize_model_variants():
    assert normalize_model("b737-800") == "B737-800"
    assert normalize_model("airbus  a330") == "Airbus a330"


def test_detect_operator_info():
    info = detect_operator_info("Operated by Pegasus out of Türkiye")
    assert info.name == "Pegasus"
    assert info.country == "Turkey"

    assert detect_operator_info("").as_dict() == {"name": None, "country": None}
