"""Unit tests for form labels and selectors."""

from form_layout import ConsultationForm, gender_choice, quote_text


class TestPatientMatch:

    def test_plain_date_of_birth(self):
        assert ConsultationForm().patient_match("12/05/1980") == '#ui-id-1 li a:has-text("12/05/1980")'

    def test_double_quote_in_date_of_birth_is_escaped(self):
        selector = ConsultationForm().patient_match('12/05"1980')

        assert selector == '#ui-id-1 li a:has-text("12/05\\"1980")'

    def test_backslash_is_escaped_before_quotes(self):
        assert quote_text('a\\"b') == 'a\\\\\\"b'


class TestGenderChoice:

    def test_exact_values_pass_through(self):
        assert gender_choice("Male") == "Male"
        assert gender_choice("Female") == "Female"

    def test_anything_else_is_trans(self):
        assert gender_choice("F") == "Trans"
