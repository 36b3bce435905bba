from cityprogress.services import ExperienceCurve


def test_default_curve_costs():
    curve = ExperienceCurve()
    assert curve.required_exp(1) == 100
    assert curve.required_exp(2) == 150
    assert curve.required_exp(3) == 225


def test_costs_strictly_increase():
    curve = ExperienceCurve()
    costs = [curve.required_exp(level) for level in range(1, 60)]
    assert all(later > earlier for earlier, later in zip(costs, costs[1:]))


def test_rounding_is_half_to_even():
    # 100 * 1.5^3 = 337.5
    assert ExperienceCurve().required_exp(4) == 338
    # 10 * 1.25 = 12.5
    assert ExperienceCurve(base_cost=10, multiplier=1.25).required_exp(2) == 12


def test_total_exp_for_level():
    curve = ExperienceCurve()
    assert curve.total_exp_for_level(1) == 0
    assert curve.total_exp_for_level(3) == 250
    assert curve.total_exp_for_level(4) == 250 + 338


def test_custom_curve():
    curve = ExperienceCurve(base_cost=50, multiplier=2.0)
    assert [curve.required_exp(level) for level in (1, 2, 3)] == [50, 100, 200]
