from worker.schedule_extractor import (
    extract_schedule,
    find_date_range,
    parse_schedule_line,
    schedule_label,
)

LIST_LAYOUT = """
<html><body>
  <div class="nav"><a href="/">Home</a></div>
  <div class="content">
    <h2>Mobile Camera Locations:</h2>
    <p>Week of 6/1-6/7</p>
    <ul>
      <li><strong>Monday:</strong> 5800 Eastern Ave – 1900 Brady St.</li>
      <li>Tuesday: 3100 Harrison St</li>
    </ul>
  </div>
</body></html>
"""

BR_LAYOUT = """
<html><body>
  <section>
    <h3>Mobile camera locations</h3>
    <p>June 2 - June 8, 2025</p>
    <p>Monday: 5800 Eastern Ave<br>Wednesday: 2100 Marquette St &amp; 4300 Eastern Ave</p>
  </section>
</body></html>
"""

TEXT_LAYOUT = """
<html><body>
  <div>This week's enforcement (6/8-6/14)</div>
  <div>Thursday: 1000 W 53rd St</div>
  <div>Friday: 2600 E River Dr and 5500 Pine St</div>
</body></html>
"""


def test_list_layout_with_date_range():
    entries = extract_schedule(LIST_LAYOUT)

    assert [(e.day, e.addresses, e.schedule_label) for e in entries] == [
        ("Monday", ["5800 Eastern Ave", "1900 Brady St."], "Monday (6/1-6/7)"),
        ("Tuesday", ["3100 Harrison St"], "Tuesday (6/1-6/7)"),
    ]


def test_br_separated_days_and_month_name_range():
    entries = extract_schedule(BR_LAYOUT)

    assert [e.day for e in entries] == ["Monday", "Wednesday"]
    assert entries[1].addresses == ["2100 Marquette St", "4300 Eastern Ave"]
    assert entries[0].schedule_label == "Monday (June 2 - June 8, 2025)"


def test_falls_back_to_page_text_scan():
    entries = extract_schedule(TEXT_LAYOUT)

    assert [(e.day, e.addresses) for e in entries] == [
        ("Thursday", ["1000 W 53rd St"]),
        ("Friday", ["2600 E River Dr", "5500 Pine St"]),
    ]
    assert entries[0].schedule_label == "Thursday (6/8-6/14)"


def test_page_without_schedule_returns_empty_list():
    assert extract_schedule("<html><body><p>Site maintenance</p></body></html>") == []
    assert extract_schedule("") == []


def test_parse_schedule_line():
    entry = parse_schedule_line("monday: 5800 Eastern Ave – 1900 Brady St.", "6/1-6/7")
    assert entry.day == "Monday"
    assert entry.addresses == ["5800 Eastern Ave", "1900 Brady St."]

    assert parse_schedule_line("Closed for the holiday") is None
    assert parse_schedule_line("Monday:   ") is None


def test_schedule_label_without_range():
    assert schedule_label("Friday") == "Friday"
    assert schedule_label("Friday", "6/1-6/7") == "Friday (6/1-6/7)"


def test_find_date_range():
    assert find_date_range("Locations for 6/1 - 6/7") == "6/1 - 6/7"
    assert find_date_range("Locations for Jun. 2 – Jun. 8") == "Jun. 2 – Jun. 8"
    assert find_date_range("no dates here") == ""
