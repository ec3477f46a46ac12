"""
Tests for the three-pass address extractor.
"""

from contact_importer.models.domain.contact_domain import ContactCandidate
from contact_importer.models.domain.gmail_domain import GmailMessage
from contact_importer.services.address_extractor import (
    dedupe_candidates,
    extract_addresses,
    extract_thread_contacts,
    html_to_text,
)

SAMPLE = (
    "Please contact john.doe@example.com for more info. "
    '"Jane Smith" <jane.smith@company.org> or Mary Johnson <mary@test.co.uk>. '
    "Another contact is support@help.net"
)


def _as_dict(candidates):
    return {c.email: c.name for c in candidates}


def test_sample_text_yields_four_unique_contacts():
    contacts = extract_addresses(SAMPLE)

    assert len(contacts) == 4
    assert _as_dict(contacts) == {
        "john.doe@example.com": "John Doe",
        "jane.smith@company.org": "Jane Smith",
        "mary@test.co.uk": "Mary Johnson",
        "support@help.net": "Support",
    }


def test_bare_pass_results_come_before_display_name_passes():
    emails = [c.email for c in extract_addresses(SAMPLE)]

    assert emails == [
        "john.doe@example.com",
        "support@help.net",
        "jane.smith@company.org",
        "mary@test.co.uk",
    ]


def test_extraction_is_deterministic():
    assert extract_addresses(SAMPLE) == extract_addresses(SAMPLE)


def test_empty_or_missing_text():
    assert extract_addresses("") == []
    assert extract_addresses(None) == []
    assert extract_addresses("nothing to see here") == []


def test_emails_are_lowercased_and_deduplicated():
    contacts = extract_addresses("Write to John.Doe@Example.COM or john.doe@example.com")

    assert contacts == [ContactCandidate(email="john.doe@example.com", name="John Doe")]


def test_names_keep_their_case():
    contacts = extract_addresses('"ACME Support" <help@acme.io>')

    assert contacts == [ContactCandidate(email="help@acme.io", name="ACME Support")]


def test_quoted_name_is_trimmed():
    contacts = extract_addresses('"  Jane Smith  " <JANE@company.org>')

    assert contacts == [ContactCandidate(email="jane@company.org", name="Jane Smith")]


def test_empty_quoted_name_falls_back_to_inferred_name():
    contacts = extract_addresses('"" <jane_smith@company.org>')

    assert contacts == [ContactCandidate(email="jane_smith@company.org", name="Jane Smith")]


def test_angle_address_without_name_uses_inferred_name():
    contacts = extract_addresses("<ops.team@example.org>")

    assert contacts == [ContactCandidate(email="ops.team@example.org", name="Ops Team")]


def test_unquoted_name_drops_leading_label_text():
    contacts = extract_addresses("Contact: Bob Jones <bob@example.com>")

    assert contacts == [ContactCandidate(email="bob@example.com", name="Bob Jones")]


def test_lowercase_free_text_is_not_taken_as_name():
    contacts = extract_addresses("reach out to <carla.diaz@example.com> today")

    assert contacts == [ContactCandidate(email="carla.diaz@example.com", name="Carla Diaz")]


def test_domain_needs_two_letter_final_label():
    assert extract_addresses("bad@example.c and bad@example.123") == []


def test_trailing_punctuation_is_not_part_of_address():
    contacts = extract_addresses("Mail me at anna@example.com.")

    assert [c.email for c in contacts] == ["anna@example.com"]


def test_bare_match_wins_over_later_display_name_of_same_address():
    # Open question: a name-bearing match found by a later pass does not
    # replace the inferred name of an earlier bare match. Kept as-is.
    text = "Ping jsmith@example.com first. Later: Jane Smith <jsmith@example.com>"

    contacts = extract_addresses(text)

    assert contacts == [ContactCandidate(email="jsmith@example.com", name="Jsmith")]


def test_quoted_pass_wins_over_unquoted_pass_for_same_address():
    text = 'Jane Smith <jane@example.com> and later "J. Smith" <jane@example.com>'

    contacts = extract_addresses(text)

    assert contacts == [ContactCandidate(email="jane@example.com", name="J. Smith")]


def test_dedupe_keeps_first_seen():
    candidates = [
        ContactCandidate("a@example.com", "First"),
        ContactCandidate("b@example.com", "B"),
        ContactCandidate("a@example.com", "Second"),
    ]

    assert dedupe_candidates(candidates) == [
        ContactCandidate("a@example.com", "First"),
        ContactCandidate("b@example.com", "B"),
    ]


def test_thread_contacts_union_plain_html_and_messages(message_data):
    first = GmailMessage(
        message_data(
            "m1",
            text="Hi, please add alice@example.com",
            html="<p>Ping &quot;Bob Stone&quot; &lt;bob@example.com&gt;</p>",
        )
    )
    second = GmailMessage(
        message_data("m2", text="ALICE@example.com again, and carol.king@example.com")
    )

    contacts = extract_thread_contacts([first, second])

    assert _as_dict(contacts) == {
        "alice@example.com": "Alice",
        "bob@example.com": "Bob Stone",
        "carol.king@example.com": "Carol King",
    }
    assert [c.email for c in contacts] == [
        "alice@example.com",
        "bob@example.com",
        "carol.king@example.com",
    ]


def test_thread_without_addresses_yields_nothing(message_data):
    message = GmailMessage(message_data("m1", text="No addresses", html="<b>none</b>"))

    assert extract_thread_contacts([message]) == []


def test_html_display_name_inside_inline_markup(message_data):
    message = GmailMessage(
        message_data("m1", html="<p><b>Mary Johnson</b> &lt;mary@test.co.uk&gt;</p>")
    )

    contacts = extract_thread_contacts([message])

    assert contacts == [ContactCandidate("mary@test.co.uk", "Mary Johnson")]


def test_html_to_text_drops_tags_and_unescapes_entities():
    text = html_to_text(
        '<div>Write to <a href="#">&quot;Bob Stone&quot;</a> &lt;bob@x.org&gt;</div>'
    )

    assert "<a" not in text
    assert _as_dict(extract_addresses(text)) == {"bob@x.org": "Bob Stone"}


def test_display_name_wrapped_onto_previous_line():
    text = "Best regards,\nMary Johnson\n<mary@x.org>"

    assert extract_addresses(text) == [ContactCandidate("mary@x.org", "Mary Johnson")]


def test_display_name_not_taken_from_two_lines_up():
    text = "Mary Johnson\n\n<mary@x.org>"

    assert extract_addresses(text) == [ContactCandidate("mary@x.org", "Mary")]
