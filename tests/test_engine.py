"""Tests for WizardEngine - section execution, flows and drafts."""

import pytest
from listing_wizard.engine.engine import WizardEngine
from listing_wizard.engine.errors import ConfigurationError, PersistenceWarning, ValidationError
from listing_wizard.engine.schema import DraftSnapshot, Flow

HOA_SPEC = """
section: hoa
version: "1"
title: Homeowners Association
description: Tell us about the HOA.
questions:
  - key: is_in_hoa
    kind: single_choice
    prompt: "Is the property in an HOA?"
    options:
      - value: "yes"
        label: "Yes"
      - value: "no"
        label: "No"
    next:
      when_value:
        "no": amenities
      default: hoa_name
  - key: hoa_name
    kind: free_text
    prompt: "HOA name:"
    when: "is_in_hoa == 'yes'"
  - key: hoa_documents
    kind: file
    prompt: "Upload the {hoa_name} documents:"
    required: false
    when: "is_in_hoa == 'yes'"
  - key: amenities
    kind: multi_choice
    prompt: "Amenities:"
    required: false
    options:
      - value: pool
        label: Pool
      - value: gym
        label: Gym
  - key: contact
    kind: group
    prompt: "HOA contact:"
    default_from: hoa_contact
    fields:
      - key: name
        label: Contact name
      - key: phone
        label: Contact phone
        required: false
        validator: account.validate_phone
"""

PRICING_SPEC = """
section: pricing
version: "1"
title: Price
description: Set your price.
questions:
  - key: desired_price
    kind: free_text
    prompt: "Desired price:"
    validator: listing_price.validate_price
  - key: agent_email
    kind: free_text
    prompt: "Email for offers:"
    default_from: profile_email
    validator: account.validate_email
  - key: commission
    kind: free_text
    prompt: "Buyer agent commission (%):"
    default_value: "2.5"
    validator: listing_price.validate_commission
  - key: hoa_reference
    kind: free_text
    prompt: "HOA on record:"
    required: false
    default_from: hoa.hoa_name
"""

MINI_FLOW = """
name: mini
version: "1"
description: HOA then price
targets:
  - section: hoa
  - section: pricing
    depends_on:
      - hoa
on_complete: listings
on_exit: landing
"""

HOA_INPUTS = {
    'is_in_hoa': 'yes',
    'hoa_name': 'Oak Park',
    'contact': {'name': 'Pat Lee'},
}

PRICING_INPUTS = {
    'desired_price': '$425,000',
}


@pytest.fixture
def listing_dir(tmp_path):
    """Create a sections/ and flows/ tree with two small sections."""
    for name, content in (('hoa', HOA_SPEC), ('pricing', PRICING_SPEC)):
        section_dir = tmp_path / "sections" / name
        section_dir.mkdir(parents=True)
        (section_dir / "spec.yaml").write_text(content)
    (tmp_path / "flows").mkdir()
    (tmp_path / "flows" / "mini.yaml").write_text(MINI_FLOW)
    return tmp_path


@pytest.fixture
def engine(mock_runner, listing_dir):
    return WizardEngine(mock_runner, base_path=listing_dir, context={'profile_email': 'ann@example.com'})


def saved_flow_ids(runner):
    return [call[1] for call in runner.calls if call[0] == 'save_draft']


def test_engine_initializes_with_runner(mock_runner):
    """WizardEngine initializes with injected runner and section validators."""
    engine = WizardEngine(mock_runner)

    assert engine.runner is mock_runner
    assert engine.state == {}
    assert 'account.validate_phone' in engine.validators
    assert 'financial_info.validate_currency' in engine.validators
    assert 'listing_price.validate_commission' in engine.validators


def test_register_validator_overrides(mock_runner):
    engine = WizardEngine(mock_runner)

    def custom(value, ctx):
        return value

    engine.register_validator('account.validate_phone', custom)
    assert engine.validators['account.validate_phone'] is custom


def test_build_graph_is_cached(engine):
    assert engine.build_graph('hoa') is engine.build_graph('hoa')


def test_build_graph_missing_section(engine):
    with pytest.raises(FileNotFoundError):
        engine.build_graph('nonexistent')


class TestHeadlessSection:
    """execute_section with pre-provided answers"""

    def test_returns_live_answers(self, engine, mock_runner):
        result = engine.execute_section('hoa', headless_inputs=HOA_INPUTS)

        assert result == {
            'is_in_hoa': 'yes',
            'hoa_name': 'Oak Park',
            'contact': {'name': 'Pat Lee'},
        }
        assert engine.state['hoa'] == result

    def test_prompts_are_interpolated(self, engine, mock_runner):
        engine.execute_section('hoa', headless_inputs=HOA_INPUTS)
        assert ('display', "Upload the Oak Park documents:") in mock_runner.calls

    def test_draft_saved_each_step_then_deleted(self, engine, mock_runner):
        engine.execute_section('hoa', headless_inputs=HOA_INPUTS)

        assert saved_flow_ids(mock_runner) == ['hoa'] * 5
        assert mock_runner.calls[-1] == ('delete_draft', 'hoa')
        assert mock_runner.drafts == {}

    def test_validators_normalise(self, engine):
        result = engine.execute_section('pricing', headless_inputs={
            'desired_price': '$425,000',
            'agent_email': 'seller@example.com',
            'commission': '3%',
        })
        assert result == {
            'desired_price': '425000',
            'agent_email': 'seller@example.com',
            'commission': '3',
        }

    def test_defaults_from_value_context_and_state(self, engine):
        engine.state['hoa'] = {'hoa_name': 'Oak Park'}

        result = engine.execute_section('pricing', headless_inputs=PRICING_INPUTS)

        assert result['agent_email'] == 'ann@example.com'
        assert result['commission'] == '2.5'
        assert result['hoa_reference'] == 'Oak Park'

    def test_group_default_from_context(self, mock_runner, listing_dir):
        engine = WizardEngine(mock_runner, base_path=listing_dir,
                              context={'hoa_contact': {'name': 'Front Desk'}})
        result = engine.execute_section('hoa', headless_inputs={'is_in_hoa': 'no'})
        assert result == {'is_in_hoa': 'no', 'contact': {'name': 'Front Desk'}}

    def test_rejected_answer_fails_fast(self, engine):
        with pytest.raises(ValidationError, match="not one of"):
            engine.execute_section('hoa', headless_inputs={'is_in_hoa': 'maybe'})

    def test_missing_required_answer_fails_fast(self, engine):
        with pytest.raises(ValidationError, match="An answer is required") as excinfo:
            engine.execute_section('hoa', headless_inputs={})
        assert excinfo.value.key == 'is_in_hoa'

    def test_validator_message_surfaces(self, engine):
        with pytest.raises(ValidationError, match="Contact phone: Please enter a valid phone"):
            engine.execute_section('hoa', headless_inputs={
                'is_in_hoa': 'no', 'contact': {'name': 'Pat', 'phone': '123'},
            })


class TestDrafts:
    """Resume and best-effort persistence"""

    def test_resume_from_draft(self, engine, mock_runner):
        mock_runner.drafts['hoa'] = DraftSnapshot(
            flow_id='hoa', version='1', current_key='amenities', answers={'is_in_hoa': 'no'},
        ).model_dump(mode='json')

        result = engine.execute_section('hoa', headless_inputs={'contact': {'name': 'Pat Lee'}})

        assert result == {'is_in_hoa': 'no', 'contact': {'name': 'Pat Lee'}}

    def test_resume_false_ignores_draft(self, engine, mock_runner):
        mock_runner.drafts['hoa'] = DraftSnapshot(
            flow_id='hoa', version='1', current_key='amenities', answers={'is_in_hoa': 'no'},
        ).model_dump(mode='json')

        result = engine.execute_section('hoa', headless_inputs=HOA_INPUTS, resume=False)

        assert result['is_in_hoa'] == 'yes'
        assert ('load_draft', 'hoa') not in mock_runner.calls

    @pytest.mark.parametrize("draft", [
        {'flow_id': 'hoa', 'version': '0', 'current_key': 'amenities', 'answers': {'is_in_hoa': 'no'}},
        {'flow_id': 'hoa', 'version': '1', 'current_key': 'hoa_name', 'answers': {'is_in_hoa': 'no'}},
        {'flow_id': 'hoa', 'version': '1', 'current_key': 'gone', 'answers': {}},
        {'garbage': True},
    ], ids=['old-version', 'off-route', 'unknown-key', 'unreadable'])
    def test_unusable_draft_is_discarded(self, engine, mock_runner, draft):
        mock_runner.drafts['hoa'] = draft

        with pytest.warns(PersistenceWarning, match="Discarding draft 'hoa'"):
            result = engine.execute_section('hoa', headless_inputs=HOA_INPUTS)

        assert result['hoa_name'] == 'Oak Park'
        assert mock_runner.calls.index(('delete_draft', 'hoa')) < mock_runner.calls.index(
            next(call for call in mock_runner.calls if call[0] == 'save_draft')
        )

    def test_draft_after_branch_switch_drops_cleared_answers(self, engine, mock_runner):
        """Switching is_in_hoa to 'no' removes the HOA answers from the next draft."""
        mock_runner.input_queue = ['1', 'Oak Park', '', 'back', 'back', 'back', '2', 'exit']

        assert engine.execute_section('hoa') is None

        draft = mock_runner.drafts['hoa']
        assert draft['current_key'] == 'amenities'
        assert draft['answers'] == {'is_in_hoa': 'no'}

    def test_every_save_after_switch_omits_cleared_answers(self, engine, mock_runner):
        navigator = engine.open_section('hoa')
        navigator.advance('yes')
        navigator.advance('Oak Park')
        navigator.retreat()
        navigator.retreat()
        assert mock_runner.drafts['hoa']['answers']['hoa_name'] == 'Oak Park'

        navigator.advance('no')

        saved = mock_runner.drafts['hoa']
        assert saved['current_key'] == 'amenities'
        assert 'hoa_name' not in saved['answers']

    def test_save_failure_warns_and_continues(self, engine, mock_runner):
        mock_runner.responses['save_draft'] = OSError("disk full")

        with pytest.warns(PersistenceWarning, match="Could not save draft 'hoa': disk full"):
            result = engine.execute_section('hoa', headless_inputs=HOA_INPUTS)

        assert result['is_in_hoa'] == 'yes'

    def test_load_failure_warns_and_starts_fresh(self, engine, mock_runner):
        mock_runner.responses['load_draft'] = OSError("permission denied")

        with pytest.warns(PersistenceWarning, match="Could not load draft"):
            result = engine.execute_section('hoa', headless_inputs=HOA_INPUTS)

        assert result['contact'] == {'name': 'Pat Lee'}


class TestInteractiveSection:
    """execute_section driven through runner.get_input"""

    def test_back_then_exit_saves_draft(self, engine, mock_runner):
        mock_runner.input_queue = ['1', 'back', '', 'Oak Park', 'exit']

        result = engine.execute_section('hoa')

        assert result is None
        draft = mock_runner.drafts['hoa']
        assert draft['current_key'] == 'hoa_documents'
        assert draft['answers'] == {'is_in_hoa': 'yes', 'hoa_name': 'Oak Park'}
        assert "Progress saved" in mock_runner.displayed()

    def test_resume_after_exit(self, engine, mock_runner, listing_dir):
        mock_runner.input_queue = ['1', 'Oak Park', 'exit']
        assert engine.execute_section('hoa') is None

        mock_runner.input_queue = ['', '1, 2', 'Pat Lee', '555.123.4567']
        result = WizardEngine(mock_runner, base_path=listing_dir).execute_section('hoa')

        assert result == {
            'is_in_hoa': 'yes',
            'hoa_name': 'Oak Park',
            'amenities': ['pool', 'gym'],
            'contact': {'name': 'Pat Lee', 'phone': '(555) 123-4567'},
        }
        assert 'hoa' not in mock_runner.drafts

    def test_invalid_choice_reprompts(self, engine, mock_runner):
        mock_runner.input_queue = ['maybe', '2', '', 'Pat Lee', '']

        result = engine.execute_section('hoa')

        assert result == {'is_in_hoa': 'no', 'contact': {'name': 'Pat Lee', 'phone': ''}}
        assert "Error: 'maybe' is not one of: yes, no" in mock_runner.displayed()

    def test_back_on_first_question_reprompts(self, engine, mock_runner):
        mock_runner.input_queue = ['back', 'no', '', 'Pat Lee', '']

        engine.execute_section('hoa')

        assert "Error: Already at the first question" in mock_runner.displayed()

    def test_blank_required_reprompts(self, engine, mock_runner):
        mock_runner.input_queue = ['', 'no', '', 'Pat Lee', '']

        engine.execute_section('hoa')

        assert "Error: An answer is required" in mock_runner.displayed()

    def test_missing_file_reprompts(self, engine, mock_runner):
        mock_runner.responses['file_exists'] = {'/docs/bylaws.pdf': True}
        mock_runner.input_queue = ['yes', 'Oak Park', '/docs/missing.pdf', '/docs/bylaws.pdf',
                                   '', 'Pat Lee', '']

        result = engine.execute_section('hoa')

        assert "Error: File not found: /docs/missing.pdf" in mock_runner.displayed()
        assert result['hoa_documents'] == '/docs/bylaws.pdf'

    def test_progress_and_instructions_shown(self, engine, mock_runner):
        mock_runner.input_queue = ['no', '', 'Pat Lee', '']

        engine.execute_section('hoa')

        output = mock_runner.displayed()
        assert "Homeowners Association" in output
        assert "Type 'back'" in output
        assert "[Question 1 of 5]" in output
        assert "[Question 2 of 3]" in output


class TestFlows:
    """execute_flow across sections"""

    def test_headless_flow_runs_in_dependency_order(self, engine, mock_runner):
        result = engine.execute_flow('mini', {'hoa': HOA_INPUTS, 'pricing': PRICING_INPUTS})

        assert list(result) == ['hoa', 'pricing']
        assert result['pricing']['hoa_reference'] == 'Oak Park'
        assert mock_runner.current_view == 'listings'
        assert mock_runner.drafts == {}

    def test_flow_draft_tracks_current_section(self, engine, mock_runner):
        engine.execute_flow('mini', {'hoa': HOA_INPUTS, 'pricing': PRICING_INPUTS})

        flow_saves = [call[2] for call in mock_runner.calls if call[:2] == ('save_draft', 'mini')]
        assert [save['current_key'] for save in flow_saves] == ['hoa', 'pricing']
        assert flow_saves[1]['answers']['hoa']['hoa_name'] == 'Oak Park'
        assert 'mini.hoa' in saved_flow_ids(mock_runner)

    def test_exit_goes_to_exit_view_and_keeps_drafts(self, engine, mock_runner):
        mock_runner.input_queue = ['exit']

        assert engine.execute_flow('mini') is None

        assert mock_runner.current_view == 'landing'
        assert mock_runner.drafts['mini']['current_key'] == 'hoa'
        assert mock_runner.drafts['mini.hoa']['current_key'] == 'is_in_hoa'

    def test_resume_skips_completed_sections(self, engine, mock_runner):
        mock_runner.drafts['mini'] = DraftSnapshot(
            flow_id='mini', version='1', current_key='pricing',
            answers={'hoa': {'is_in_hoa': 'yes', 'hoa_name': 'Elm Court'}},
        ).model_dump(mode='json')

        result = engine.execute_flow('mini', {'pricing': PRICING_INPUTS})

        assert result['hoa'] == {'is_in_hoa': 'yes', 'hoa_name': 'Elm Court'}
        assert result['pricing']['hoa_reference'] == 'Elm Court'
        assert ('load_draft', 'mini.hoa') not in mock_runner.calls

    def test_stale_flow_draft_is_discarded(self, engine, mock_runner):
        mock_runner.drafts['mini'] = DraftSnapshot(
            flow_id='mini', version='0', current_key='pricing', answers={'hoa': {}},
        ).model_dump(mode='json')

        with pytest.warns(PersistenceWarning, match="Discarding draft 'mini'"):
            result = engine.execute_flow('mini', {'hoa': HOA_INPUTS, 'pricing': PRICING_INPUTS})

        assert result['hoa']['hoa_name'] == 'Oak Park'


class TestSectionOrder:
    def make_flow(self, targets, **kwargs):
        return Flow(name='test', version='1', description='d', targets=targets, **kwargs)

    def test_dependencies_come_first(self, engine):
        flow = self.make_flow([
            {'section': 'pricing', 'depends_on': ['hoa']},
            {'section': 'hoa'},
        ])
        assert engine._section_order(flow) == ['hoa', 'pricing']

    def test_reverse_ordering(self, engine):
        flow = self.make_flow([{'section': 'hoa'}, {'section': 'pricing', 'depends_on': ['hoa']}])
        assert engine._section_order(flow, reverse=True) == ['pricing', 'hoa']

    def test_unknown_dependency(self, engine):
        flow = self.make_flow([{'section': 'pricing', 'depends_on': ['account']}])
        with pytest.raises(ConfigurationError, match="unknown section"):
            engine._section_order(flow)

    def test_circular_dependencies(self, engine):
        flow = self.make_flow([
            {'section': 'hoa', 'depends_on': ['pricing']},
            {'section': 'pricing', 'depends_on': ['hoa']},
        ])
        with pytest.raises(ConfigurationError, match="circular"):
            engine._section_order(flow)


def test_interpolate_prompt_keeps_unknown_placeholders(engine):
    assert engine._interpolate_prompt("Owner {name} ({missing})", {'name': 'Ann'}) == "Owner Ann ({missing})"
