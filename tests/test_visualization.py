from expense_dashboard import aggregation as agg
from expense_dashboard import visualization as viz


def test_pie_chart_keeps_slice_colours(expenses):
    fig = viz.create_category_pie_chart(agg.top_category_slices(expenses))
    pie = fig.data[0]
    assert list(pie.labels) == ["Labour", "Materials", "Design", "Other"]
    assert list(pie.marker.colors) == list(agg.CHART_PALETTE)


def test_empty_inputs_give_placeholder_figures():
    assert viz.create_category_pie_chart([]).layout.title.text == "No data to display"
    assert viz.create_category_bar_chart(agg.category_series([])).layout.title.text == "No data to display"
    assert viz.create_monthly_trend_chart(agg.monthly_totals([])).layout.title.text == "No data to display"


def test_monthly_trend_chart(expenses):
    fig = viz.create_monthly_trend_chart(agg.monthly_totals(expenses))
    assert list(fig.data[0].x) == ["2024-01", "2024-02", "2024-03"]
    assert fig.layout.title.text == "Monthly spending"


def test_category_bar_chart(expenses):
    fig = viz.create_category_bar_chart(agg.category_series(expenses))
    assert list(fig.data[0].x)[0] == "labour"
