"""Tests for the proposal builder wizard controller."""

import asyncio

import httpx
import pytest

from proposal_desk.core.exceptions import ApiError, FieldError, ServerValidationError
from proposal_desk.integrations.api_client import ProposalApiClient
from proposal_desk.models import (
    InquiryRecord,
    ProposalRecord,
    ServiceType,
    WizardState,
)
from proposal_desk.wizard.controller import WizardController


async def reach_terms_step(wizard: WizardController, inquiry: InquiryRecord) -> None:
    await wizard.load(inquiry)
    for _ in range(4):
        assert wizard.go_next()
    assert wizard.state == WizardState.STEP_5


class TestStepNavigation:
    """Next / Previous / jump behaviour."""

    def test_initial_state(self, wizard):
        assert wizard.state == WizardState.STEP_1
        assert wizard.current_step == 1
        assert wizard.highest_step_reached == 1
        assert wizard.generated_html is None
        assert wizard.document is None

    @pytest.mark.asyncio
    async def test_jump_succeeds_only_up_to_highest_step_reached(self, wizard, sample_inquiry):
        """Jumps beyond the furthest step reached leave everything unchanged."""
        await wizard.load(sample_inquiry)
        wizard.go_next()
        wizard.go_next()
        wizard.go_previous()
        assert wizard.current_step == 2
        assert wizard.highest_step_reached == 3

        for target in range(0, 8):
            before = (wizard.current_step, wizard.highest_step_reached, wizard.state)
            result = wizard.jump_to_step(target)

            if 1 <= target <= 3:
                assert result is True
                assert wizard.current_step == target
                assert wizard.state == WizardState.for_step(target)
                wizard.jump_to_step(2)
            else:
                assert result is False
                assert (wizard.current_step, wizard.highest_step_reached, wizard.state) == before

    @pytest.mark.asyncio
    async def test_jump_keeps_intermediate_data(self, wizard, sample_inquiry):
        await wizard.load(sample_inquiry)
        wizard.go_next()
        wizard.go_next()
        wizard.update_terms(notes="Bring own bins")

        assert wizard.jump_to_step(1)
        assert wizard.draft.client_info.client_name == "Maria Santos"
        assert wizard.draft.terms.notes == "Bring own bins"

    def test_go_next_blocked_without_service_type(self, wizard):
        assert wizard.go_next() is False
        assert wizard.current_step == 1
        assert "service_type" in wizard.field_errors

    @pytest.mark.asyncio
    @pytest.mark.parametrize("service_type", [
        ServiceType.WASTE_COLLECTION,
        ServiceType.HAZARDOUS,
        ServiceType.CLEARING,
        ServiceType.ONE_TIME,
        ServiceType.LONG_TERM,
        ServiceType.RECYCLABLES,
    ])
    async def test_unavailable_service_types_cannot_be_selected(self, wizard, service_type):
        assert await wizard.select_service_type(service_type) is False
        assert wizard.draft.service_type is None
        assert wizard.go_next() is False

    @pytest.mark.asyncio
    async def test_unknown_service_type_is_rejected(self, wizard):
        with pytest.raises(ValueError):
            await wizard.select_service_type("septic_tank")

    @pytest.mark.asyncio
    async def test_fixed_monthly_unlocks_step_two(self, wizard, mock_api):
        assert await wizard.select_service_type("fixed_monthly") is True
        mock_api.get_template_for_service.assert_awaited_once_with(ServiceType.FIXED_MONTHLY)
        assert wizard.template is not None
        assert wizard.draft.service_details.contract_duration == 12

        assert wizard.go_next() is True
        assert wizard.state == WizardState.STEP_2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["client_name", "client_company", "client_address"])
    async def test_step_two_requires_trimmed_fields(self, wizard, field):
        await wizard.select_service_type(ServiceType.FIXED_MONTHLY)
        wizard.go_next()
        wizard.update_client_info(
            client_name="Maria Santos",
            client_company="GreenBuild Corp",
            client_address="Makati City",
        )
        wizard.update_client_info(**{field: "   "})

        assert wizard.go_next() is False
        assert wizard.current_step == 2
        assert field in wizard.field_errors

        wizard.update_client_info(**{field: "filled in"})
        assert field not in wizard.field_errors
        assert wizard.go_next() is True

    @pytest.mark.asyncio
    async def test_position_is_optional(self, wizard):
        await wizard.select_service_type(ServiceType.FIXED_MONTHLY)
        wizard.go_next()
        wizard.update_client_info(
            client_name="Maria",
            client_company="GreenBuild",
            client_address="Makati",
            client_position="",
        )
        assert wizard.go_next() is True

    @pytest.mark.asyncio
    async def test_steps_three_and_four_pass_with_defaults(self, wizard, sample_inquiry):
        await wizard.load(sample_inquiry)
        wizard.go_next()
        assert wizard.go_next() is True
        assert wizard.go_next() is True
        assert wizard.current_step == 5

    @pytest.mark.asyncio
    async def test_go_next_on_last_step_does_nothing(self, wizard, sample_inquiry):
        await reach_terms_step(wizard, sample_inquiry)
        assert wizard.go_next() is False
        assert wizard.current_step == 5

    def test_go_previous_on_first_step(self, wizard):
        assert wizard.go_previous() is False

    def test_invalid_validity_days_is_reported(self, wizard):
        assert wizard.update_client_info(validity_days=0) is False
        assert "validity_days" in wizard.field_errors
        assert wizard.draft.client_info.validity_days == 30


class TestLoading:
    """Opening the wizard from an inquiry."""

    @pytest.mark.asyncio
    async def test_prefills_client_info(self, wizard, sample_inquiry):
        await wizard.load(sample_inquiry)

        info = wizard.draft.client_info
        assert info.client_name == "Maria Santos"
        assert info.client_company == "GreenBuild Corp"
        assert info.client_position == "Facilities Manager"
        assert info.client_address == "123 Ayala Ave, Makati City"
        assert wizard.draft.service_type == ServiceType.FIXED_MONTHLY

    @pytest.mark.asyncio
    async def test_falls_back_to_default_template(self, wizard, mock_api, sample_inquiry):
        mock_api.get_template_for_service.return_value = None

        await wizard.load(sample_inquiry)

        mock_api.get_default_template.assert_awaited_once()
        assert wizard.template is not None

    @pytest.mark.asyncio
    async def test_template_failure_is_reported(self, wizard, mock_api, notifier, sample_inquiry):
        mock_api.get_template_for_service.side_effect = ApiError("Service unavailable", 503)

        await wizard.load(sample_inquiry)

        assert wizard.template is None
        assert notifier.last.message == "Service unavailable"

    @pytest.mark.asyncio
    async def test_rejected_proposal_is_restored(
        self, wizard, mock_api, notifier, rejected_inquiry, sample_proposal_row
    ):
        mock_api.get_proposal.return_value = ProposalRecord(**sample_proposal_row)

        await wizard.load(rejected_inquiry)

        assert wizard.is_revision
        assert wizard.draft.client_info.validity_days == 45
        assert wizard.draft.terms.payment_terms == "Net 15"
        assert wizard.draft.pricing.services[0].unit_price == 8000
        assert "Monthly rate too high" in notifier.last.message


class TestPreviewGeneration:
    """Generate Preview on the last step."""

    @pytest.mark.asyncio
    async def test_happy_path_reaches_review(self, wizard, mock_api, sample_inquiry, preview_html):
        """Select service, fill client info, skip 3-4, set terms, generate."""
        await wizard.select_service_type(ServiceType.FIXED_MONTHLY)
        assert wizard.go_next()

        wizard.update_client_info(
            client_name="Maria Santos",
            client_company="GreenBuild Corp",
            client_address="123 Ayala Ave, Makati City",
        )
        assert wizard.go_next()
        assert wizard.go_next()
        assert wizard.go_next()

        wizard.update_terms(payment_terms="Net 15", schedule="Every Monday")
        assert wizard.can_generate

        assert await wizard.generate_preview() is True

        assert wizard.state == WizardState.REVIEWING
        assert wizard.generated_html == preview_html
        document = wizard.document
        assert document.original == document.saved == document.live == preview_html
        assert document.has_unsaved_changes is False

        sent_draft = mock_api.generate_proposal_preview.await_args.args[0]
        assert sent_draft.terms.payment_terms == "Net 15"

    @pytest.mark.asyncio
    async def test_cannot_generate_before_last_step(self, wizard, sample_inquiry):
        await wizard.load(sample_inquiry)
        assert wizard.can_generate is False
        assert await wizard.generate_preview() is False
        assert wizard.state == WizardState.STEP_1

    @pytest.mark.asyncio
    async def test_cannot_generate_without_template(self, wizard, mock_api, sample_inquiry):
        mock_api.get_template_for_service.return_value = None
        mock_api.get_default_template.return_value = None
        await reach_terms_step(wizard, sample_inquiry)

        assert wizard.can_generate is False
        assert await wizard.generate_preview() is False
        mock_api.generate_proposal_preview.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_returns_to_terms_step(self, wizard, mock_api, notifier, sample_inquiry):
        await reach_terms_step(wizard, sample_inquiry)
        mock_api.generate_proposal_preview.side_effect = ApiError("Template rendering failed", 500)

        assert await wizard.generate_preview() is False

        assert wizard.state == WizardState.STEP_5
        assert wizard.document is None
        assert wizard.can_generate is True
        assert notifier.last.message == "Template rendering failed"

    @pytest.mark.asyncio
    async def test_failure_without_message_uses_fallback(self, wizard, mock_api, notifier, sample_inquiry):
        await reach_terms_step(wizard, sample_inquiry)
        mock_api.generate_proposal_preview.side_effect = ApiError("")

        await wizard.generate_preview()

        assert notifier.last.message == "Failed to generate proposal preview"

    @pytest.mark.asyncio
    async def test_server_validation_errors_keep_draft(self, wizard, mock_api, sample_inquiry):
        await reach_terms_step(wizard, sample_inquiry)
        wizard.update_terms(notes="Keep me")
        errors = [FieldError(field="client_address", message="Address is required")]
        mock_api.generate_proposal_preview.side_effect = ServerValidationError("Invalid", errors)

        assert await wizard.generate_preview() is False

        assert wizard.server_errors == errors
        assert wizard.draft.terms.notes == "Keep me"
        assert wizard.state == WizardState.STEP_5

    @pytest.mark.asyncio
    async def test_in_flight_request_blocks_retrigger_and_stale_response_is_dropped(
        self, wizard, mock_api, sample_inquiry
    ):
        await reach_terms_step(wizard, sample_inquiry)
        result = mock_api.generate_proposal_preview.return_value
        release = asyncio.Event()

        async def slow_preview(*args, **kwargs):
            await release.wait()
            return result

        mock_api.generate_proposal_preview.side_effect = slow_preview

        task = asyncio.create_task(wizard.generate_preview())
        await asyncio.sleep(0)

        assert wizard.state == WizardState.GENERATING
        assert wizard.footer().next_label == "Generating..."
        assert await wizard.generate_preview() is False

        wizard.cancel()
        release.set()

        assert await task is False
        assert wizard.state == WizardState.STEP_1
        assert wizard.document is None
        assert mock_api.generate_proposal_preview.await_count == 1

    @pytest.mark.asyncio
    async def test_unreadable_preview_body_returns_to_terms_step(
        self, notifier, sample_inquiry, sample_template_row
    ):
        def backend(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/proposals/preview"):
                return httpx.Response(200, text="<html>gateway page</html>")
            return httpx.Response(200, json=sample_template_row)

        api = ProposalApiClient(base_url="http://testserver/api", transport=httpx.MockTransport(backend))
        wizard = WizardController(api, notifier)
        await reach_terms_step(wizard, sample_inquiry)

        assert await wizard.generate_preview() is False

        assert wizard.state == WizardState.STEP_5
        assert wizard.is_generating is False
        assert wizard.can_generate is True
        assert wizard.go_previous() is True
        assert notifier.last.message == "Unexpected response from server"

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_leave_wizard_generating(self, wizard, mock_api, sample_inquiry):
        await reach_terms_step(wizard, sample_inquiry)
        mock_api.generate_proposal_preview.side_effect = RuntimeError("renderer crashed")

        with pytest.raises(RuntimeError):
            await wizard.generate_preview()

        assert wizard.state == WizardState.STEP_5
        assert wizard.is_generating is False
        assert wizard.can_generate is True

    @pytest.mark.asyncio
    async def test_regeneration_replaces_document_explicitly(self, wizard, mock_api, sample_inquiry):
        await reach_terms_step(wizard, sample_inquiry)
        await wizard.generate_preview()
        document = wizard.document
        document.edit("<p>local edit</p>")

        assert wizard.back_to_edit() is True
        assert wizard.state == WizardState.STEP_5
        mock_api.generate_proposal_preview.return_value = mock_api.generate_proposal_preview.return_value.model_copy(
            update={"html": "<p>second render</p>"}
        )
        assert await wizard.generate_preview() is True

        assert wizard.document is document
        assert document.original == document.saved == document.live == "<p>second render</p>"
        assert wizard.has_unsaved_editor_changes is False

    @pytest.mark.asyncio
    async def test_document_styles_come_from_template(self, wizard, sample_inquiry):
        await reach_terms_step(wizard, sample_inquiry)
        await wizard.generate_preview()

        assert wizard.document.scoped_styles == ".proposal-editor-scope h1 { color: green; }"


class TestSubmission:
    """Persisting the reviewed proposal."""

    @pytest.mark.asyncio
    async def test_submit_creates_pending_proposal(
        self, wizard, mock_api, notifier, sample_inquiry, sample_proposal_row
    ):
        mock_api.create_proposal.return_value = ProposalRecord(
            **{**sample_proposal_row, "status": "pending"}
        )
        await reach_terms_step(wizard, sample_inquiry)
        await wizard.generate_preview()
        wizard.document.edit("<p>Edited</p>")
        wizard.document.save()

        record = await wizard.submit()

        assert record.proposal_number == "PROP-20260131-0001"
        request = mock_api.create_proposal.await_args.args[0]
        assert request.inquiry_id == "inq_test_12345"
        assert request.template_id == "tmpl_fixed_monthly"
        assert request.proposal_data.edited_html_content == "<p>Edited</p>"
        assert request.proposal_data.pricing.total == 5600
        assert request.proposal_data.service_details == {"contract_duration": 12, "monthly_rate": 0}
        assert notifier.last.level == "success"
        assert wizard.state == WizardState.STEP_1
        assert wizard.document is None

    @pytest.mark.asyncio
    async def test_submit_sends_saved_content_only(
        self, wizard, mock_api, sample_inquiry, sample_proposal_row, preview_html
    ):
        mock_api.create_proposal.return_value = ProposalRecord(**sample_proposal_row)
        await reach_terms_step(wizard, sample_inquiry)
        await wizard.generate_preview()
        wizard.document.edit("<p>Not saved</p>")

        await wizard.submit()

        request = mock_api.create_proposal.await_args.args[0]
        assert request.proposal_data.edited_html_content == preview_html

    @pytest.mark.asyncio
    async def test_revision_updates_rejected_proposal(
        self, wizard, mock_api, rejected_inquiry, sample_proposal_row
    ):
        mock_api.get_proposal.return_value = ProposalRecord(**sample_proposal_row)
        mock_api.update_proposal.return_value = ProposalRecord(
            **{**sample_proposal_row, "status": "pending"}
        )
        await reach_terms_step(wizard, rejected_inquiry)
        await wizard.generate_preview()

        await wizard.submit()

        mock_api.create_proposal.assert_not_awaited()
        proposal_id, request = mock_api.update_proposal.await_args.args
        assert proposal_id == "prop_test_1"
        assert request.proposal_data.client_info.validity_days == 45

    @pytest.mark.asyncio
    async def test_failed_submit_stays_in_review(self, wizard, mock_api, notifier, sample_inquiry):
        mock_api.create_proposal.side_effect = ApiError("Database unavailable", 502)
        await reach_terms_step(wizard, sample_inquiry)
        await wizard.generate_preview()

        assert await wizard.submit() is None

        assert wizard.state == WizardState.REVIEWING
        assert wizard.document is not None
        assert notifier.last.message == "Database unavailable"

    @pytest.mark.asyncio
    async def test_empty_saved_document_is_reported_locally(
        self, wizard, mock_api, notifier, sample_inquiry, sample_proposal_row
    ):
        await reach_terms_step(wizard, sample_inquiry)
        await wizard.generate_preview()
        wizard.document.edit("")
        wizard.document.save()

        assert await wizard.submit() is None

        mock_api.create_proposal.assert_not_awaited()
        assert "edited_html_content" in wizard.field_errors
        assert notifier.last.level == "error"
        assert notifier.last.message == "The proposal document is empty"
        assert wizard.state == WizardState.REVIEWING

        wizard.document.edit("<p>Back again</p>")
        wizard.document.save()
        mock_api.create_proposal.return_value = ProposalRecord(**sample_proposal_row)
        assert await wizard.submit() is not None

    @pytest.mark.asyncio
    async def test_submit_outside_review_does_nothing(self, wizard, mock_api, sample_inquiry):
        await reach_terms_step(wizard, sample_inquiry)
        assert await wizard.submit() is None
        mock_api.create_proposal.assert_not_awaited()


class TestFooter:
    """Navigation footer view state."""

    def test_first_step(self, wizard):
        footer = wizard.footer()
        assert footer.step_label == "Step 1 of 5"
        assert footer.show_previous is False
        assert footer.next_label == "Next"
        assert footer.next_enabled is False

    @pytest.mark.asyncio
    async def test_last_step(self, wizard, sample_inquiry):
        await reach_terms_step(wizard, sample_inquiry)
        footer = wizard.footer()
        assert footer.is_last_step is True
        assert footer.show_previous is True
        assert footer.next_label == "Generate Preview"
        assert footer.next_enabled is True
