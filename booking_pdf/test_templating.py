from .templating import render_booking_checklist


def checklist_data(**kwargs):
    data = {
        "booking": "Booking Checklist for Weekend trip",
        "name": "Weekend trip",
        "org_name": "Forth Canoe Club",
        "custodian": "Jane Doe <jane@doe.com>",
        "booking_period": "2026-01-01 00:00 - 2026-01-05 00:00",
        "items": [
            {
                "name": "Green mamba kayak",
                "category": "Kayaks",
                "location": "Boathouse",
                "custodian": "Jane Doe",
                "code": "data:image/png;base64,AAAA",
                "main_image": "",
            }
        ],
        "header_template": "<div class=\"header\"></div>",
    }
    data.update(kwargs)
    return data


def test_render_booking_checklist():
    html = render_booking_checklist(checklist_data())

    assert html.startswith("<!DOCTYPE html>")
    assert "<h1>Booking Checklist for Weekend trip</h1>" in html
    assert "Forth Canoe Club" in html
    assert "Green mamba kayak" in html
    assert '<img class="thumb" src="data:image/png;base64,AAAA" alt="QR code">' in html
    assert html.count('<tr class="item">') == 1


def test_render_booking_checklist_escapes_values():
    html = render_booking_checklist(checklist_data())
    assert "Jane Doe &lt;jane@doe.com&gt;" in html


def test_render_booking_checklist_without_items():
    html = render_booking_checklist(checklist_data(items=[]))
    assert "No assets in this booking" in html
    assert '<tr class="item">' not in html
