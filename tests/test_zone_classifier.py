from parcelscope.analysis import SpecialZoneClassifier
from parcelscope.models import Regulation


def regs(*pairs):
    return [Regulation(law_name=law, content=content) for law, content in pairs]


def test_district_plan_from_content():
    matches = SpecialZoneClassifier().classify(regs(("국토의 계획 및 이용에 관한 법률", "지구단위계획구역")))

    assert matches.district_plan is True
    assert matches.education is False
    assert matches.cultural is False


def test_no_keyword_means_all_flags_false():
    matches = SpecialZoneClassifier().classify(regs(("산지관리법", "준보전산지"), ("수도법", "공장설립승인지역")))

    assert (matches.education, matches.district_plan, matches.cultural) == (False, False, False)
    assert matches.matched == set()


def test_law_name_is_scanned_too():
    matches = SpecialZoneClassifier().classify(regs(("교육환경 보호에 관한 법률: 상대보호구역", "")))

    assert matches.education is True


def test_cultural_keywords():
    matches = SpecialZoneClassifier().classify(regs(("문화재보호법", "역사문화환경 보존지역")))

    assert matches.cultural is True


def test_order_independent():
    items = regs(("a", "절대보호구역"), ("b", "문화재"), ("c", "지구단위계획구역"))
    classifier = SpecialZoneClassifier()

    assert classifier.classify(items) == classifier.classify(list(reversed(items)))


def test_custom_keyword_table():
    classifier = SpecialZoneClassifier({"greenbelt": ("개발제한구역",)})

    assert classifier.matched_zones(regs(("개발제한구역의 지정 및 관리에 관한 특별조치법", ""))) == {"greenbelt"}
    assert classifier.classify([]).matched == set()


def test_empty_regulations():
    matches = SpecialZoneClassifier().classify([])

    assert not (matches.education or matches.district_plan or matches.cultural)
