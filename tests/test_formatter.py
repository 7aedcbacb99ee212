from app.flow.formatter import format_daily_devotion_message


def test_formats_all_sections():
    text = format_daily_devotion_message(
        "Psalm 46:10",
        "Be still, and know that I am God.",
        "Rest is an act of trust.",
        "Where do you need stillness today?",
        3,
    )

    assert text == (
        "📖 Day 3 of 7\n\n"
        "\"Be still, and know that I am God.\"\n— Psalm 46:10\n\n"
        "Rest is an act of trust.\n\n"
        "📝 Journal Prompt: Where do you need stillness today?"
    )


def test_total_days_is_configurable():
    text = format_daily_devotion_message("John 1:1", "In the beginning", "r", "p", 2, total_days=14)
    assert text.startswith("📖 Day 2 of 14\n\n")


def test_missing_fields_render_empty():
    text = format_daily_devotion_message(None, None, None, None, 1)

    assert text.startswith("📖 Day 1 of 7")
    assert "None" not in text
    assert text.endswith("📝 Journal Prompt: ")
