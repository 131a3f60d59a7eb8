"""Tests for interactive input through the runner

These drive real sections with runner.input_queue and check what the
user is shown and what ends up in the answers.
"""

import pytest
from listing_wizard.engine import MockActionRunner, WizardEngine

PROFILE = {
    'profile_name': {'first_name': 'Ann', 'last_name': 'Lee'},
    'profile_email': 'ann@example.com',
    'profile_phone': '555.123.4567',
}


def input_calls(runner):
    return [call for call in runner.calls if call[0] == 'get_input']


class TestAccountDefaults:
    """Provider profile values are offered as defaults"""

    def test_enter_accepts_profile_values(self):
        runner = MockActionRunner()
        runner.input_queue = ['1', '', '', '', '']

        result = WizardEngine(runner, context=PROFILE).execute_section('account')

        assert result == {
            'sso_provider': 'google',
            'name': {'first_name': 'Ann', 'last_name': 'Lee'},
            'email': 'ann@example.com',
            'phone': '(555) 123-4567',
        }
        assert ('get_input', 'First Name', 'Ann') in runner.calls
        assert ('get_input', 'What is your email address?', 'ann@example.com') in runner.calls

    def test_options_and_help_are_shown(self):
        runner = MockActionRunner()
        runner.input_queue = ['Sign up with email', 'Bo', 'Chen', 'bo@example.com', '5125550100']

        result = WizardEngine(runner).execute_section('account')

        output = runner.displayed()
        assert "  1. Continue with Google" in output
        assert "  4. Sign up with email" in output
        assert "US numbers only, e.g. (555) 123-4567" in output
        assert result['sso_provider'] == 'email'
        assert result['phone'] == '(512) 555-0100'

    def test_invalid_phone_reprompts(self):
        runner = MockActionRunner()
        runner.input_queue = ['4', 'Bo', 'Chen', 'bo@example.com', '555-0100', '512-555-0100']

        result = WizardEngine(runner).execute_section('account')

        assert "Error: Please enter a valid phone number (10 digits)" in runner.displayed()
        assert result['phone'] == '(512) 555-0100'

    def test_group_field_error_names_the_field(self):
        runner = MockActionRunner()
        runner.input_queue = ['4', 'B', 'Chen', 'Bo', 'Chen', 'bo@example.com', '5125550100']

        WizardEngine(runner).execute_section('account')

        assert "Error: First Name: Name must be at least 2 characters" in runner.displayed()


class TestListingPrice:
    def test_back_shows_previous_answer(self):
        runner = MockActionRunner()
        runner.input_queue = ['1', '425000', 'back', '', '2', 'Firm', '', '1', '']

        result = WizardEngine(runner).execute_section('listing_price')

        price_prompts = [call for call in input_calls(runner)
                         if call[1] == 'What price would you like to list your home for?']
        assert [call[2] for call in price_prompts] == [None, '425000']
        assert result == {
            'pricing_video': 'watched',
            'desired_price': '425000',
            'marketing_strategy': 'competitive',
            'flexibility_level': 'firm',
            'accept_unrepresented_buyers': 'yes',
            'buyer_agent_commission': '2.5',
        }

    def test_commission_default_offered(self):
        runner = MockActionRunner()
        runner.input_queue = ['1', '$500,000', '1', '3', 'Motivated seller', '2', '2.75']

        result = WizardEngine(runner).execute_section('listing_price')

        commission_prompt = input_calls(runner)[-1]
        assert commission_prompt[2] == '2.5'
        assert result['buyer_agent_commission'] == '2.75'
        assert result['price_notes'] == 'Motivated seller'

    def test_progress_labels(self):
        runner = MockActionRunner()
        runner.input_queue = ['1', '425000', '1', '1', '', '1', '']

        WizardEngine(runner).execute_section('listing_price')

        output = runner.displayed()
        for step in range(1, 8):
            assert f"[Question {step} of 7]" in output


class TestAdditionalInformation:
    def test_upload_branch_and_multi_choice(self):
        runner = MockActionRunner()
        runner.responses['file_exists'] = {'/docs/pid.pdf': True}
        runner.input_queue = ['2', '1', '1', '/docs/pid.pdf', 'no', '5, 1', 'None', '2', '2', '2', '2']

        result = WizardEngine(runner).execute_section('additional_information')

        output = runner.displayed()
        assert "(separate several choices with commas)" in output
        assert "Error: 'None' cannot be combined with other fixture leases" in output
        assert result == {
            'is_in_hoa': 'no',
            'is_in_pid': 'yes',
            'pid_method': 'upload',
            'pid_upload': '/docs/pid.pdf',
            'is_in_mud': 'no',
            'fixture_leases': ['none'],
            'mineral_rights': 'no',
            'insurance_claims': 'no',
            'insurance_proceeds': 'no',
            'relocation_company': 'no',
        }

    def test_labels_select_several_leases(self):
        runner = MockActionRunner()
        runner.input_queue = ['2', '2', '2', 'Solar Panels, water softener', '2', '2', '2', '2']

        result = WizardEngine(runner).execute_section('additional_information')

        assert result['fixture_leases'] == ['solar-panels', 'water-softener']


class TestTitleHolderGroup:
    @pytest.fixture
    def engine(self):
        engine = WizardEngine(MockActionRunner())
        engine.state['account'] = {
            'name': {'first_name': 'Ann', 'last_name': 'Lee'},
            'email': 'ann@example.com',
            'phone': '(555) 123-4567',
        }
        return engine

    def test_owner_name_prefilled_then_exit(self, engine):
        runner = engine.runner
        runner.input_queue = ['2', '1', '1', '1', '', 'Marie', '', 'exit']

        assert engine.execute_section('title_holder') is None

        assert ('get_input', 'First Name', 'Ann') in runner.calls
        assert ('get_input', 'Middle Name (optional)', None) in runner.calls
        assert ('get_input', "What is Owner 1's phone number?", '(555) 123-4567') in runner.calls
        draft = runner.drafts['title_holder']
        assert draft['current_key'] == 'owner_1_phone'
        assert draft['answers']['owner_1_name'] == {
            'first_name': 'Ann', 'middle_name': 'Marie', 'last_name': 'Lee',
        }
        assert "Progress saved" in runner.displayed()
