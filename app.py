"""
Recruiting ATS Assistant - Streamlit Application
"""

from datetime import date
from typing import List, Optional

import streamlit as st

from agents.orchestrator import Orchestrator
from config import Config
from models.analysis import CandidateAnalysis
from models.candidate import Applicant, CandidateProfile
from models.conversation import ChatMessage, DataSnapshot
from models.job_order import Client, JobOrder
from services.email_service import EmailService
from services.extraction import ExtractionFailure
from services.team_access import UserAccess
from utils.bedrock_client import BedrockClient
from utils.database import DatabaseManager
from utils.storage import ResumeStorage

# Page configuration
st.set_page_config(
    page_title="Recruiting ATS Assistant",
    page_icon="🤖",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS for blue theme
st.markdown("""
<style>
    .stButton>button {
        background-color: #0066CC;
        color: white;
        border-radius: 5px;
        border: none;
        padding: 0.5rem 1rem;
        font-weight: 500;
    }
    .stButton>button:hover {
        background-color: #0052A3;
        color: white;
    }
    .match-badge {
        background-color: #0066CC;
        color: white;
        padding: 0.25rem 0.75rem;
        border-radius: 15px;
        font-weight: bold;
        font-size: 0.9rem;
    }
    .skill-tag {
        background-color: #E3F2FD;
        color: #0066CC;
        padding: 0.25rem 0.5rem;
        border-radius: 10px;
        font-size: 0.85rem;
        display: inline-block;
        margin: 0.2rem;
    }
</style>
""", unsafe_allow_html=True)

# Initialize session state
if 'messages' not in st.session_state:
    st.session_state.messages = []
if 'parsed_profile' not in st.session_state:
    st.session_state.parsed_profile = None
if 'parse_warnings' not in st.session_state:
    st.session_state.parse_warnings = []
if 'uploaded_resume_key' not in st.session_state:
    st.session_state.uploaded_resume_key = None
if 'analyses' not in st.session_state:
    st.session_state.analyses = {}

APPLICANT_STATUSES = ["New", "Screening", "Submitted", "Interview", "Offer", "Placed", "Rejected"]
JOB_STATUSES = ["Open", "Interviewing", "On Hold", "Placed", "Canceled"]
SORT_FIELDS = {
    "Date Applied": lambda a: a.date_applied or "",
    "Name": lambda a: (a.full_name or "").lower(),
    "Experience": lambda a: a.total_yoe or 0,
    "Rating": lambda a: a.rating or 0,
}


@st.cache_resource
def initialize_services():
    """Initialize services (cached)"""
    try:
        config = Config()

        if not config.is_configured:
            st.error("❌ Missing required configuration. Please set environment variables.")
            st.stop()

        db_manager = DatabaseManager(config.db_connection_string)
        db_manager.ensure_schema()
        bedrock_client = BedrockClient(
            region_name=config.aws_region,
            model_id=config.bedrock_model_id,
            read_timeout=config.bedrock_read_timeout,
            connect_timeout=config.bedrock_connect_timeout,
        )
        storage = ResumeStorage(
            config.s3_bucket_name,
            region_name=config.aws_region,
            prefix=config.s3_resume_prefix,
            url_expiry=config.resume_url_expiry,
        )
        email_service = EmailService(config)
        orchestrator_instance = Orchestrator(db_manager, bedrock_client, config, storage, email_service)

        return orchestrator_instance, config
    except Exception as e:
        st.error(f"❌ Error initializing services: {str(e)}")
        st.stop()


def rating_badge(rating: Optional[float]) -> str:
    if rating is None:
        return "Not rated"
    if rating >= 8:
        return f"🟢 {rating}/10"
    if rating >= 6:
        return f"🔵 {rating}/10"
    if rating >= 4:
        return f"🟡 {rating}/10"
    return f"🔴 {rating}/10"


def show_failure(failure: ExtractionFailure, action: str):
    """Render an extraction failure inline"""
    if failure.retryable:
        st.warning(f"⚠️ {action}: {failure.user_message}")
    else:
        st.error(f"❌ {action}: {failure.user_message}")
    with st.expander("Details"):
        st.code(failure.reason)


def display_analysis(analysis: CandidateAnalysis, snapshot: DataSnapshot):
    """Display an analysis with its job matches"""
    st.markdown(f"**Overall Rating:** {rating_badge(analysis.overall_rating)}")
    st.markdown(analysis.summary)

    if analysis.pros:
        st.markdown("**Strengths**")
        for pro in analysis.pros:
            st.markdown(f"- {pro}")

    if analysis.potential_discussion_points:
        st.markdown("**Discussion Points**")
        for point in analysis.potential_discussion_points:
            st.markdown(f"- {point}")

    st.markdown("**Job Matches**")
    if not analysis.job_matches:
        st.info("💡 No job orders scored 65 or higher for this candidate.")
    companies = {job.id: job.client_company for job in snapshot.job_orders}
    for match in analysis.job_matches:
        company = companies.get(match.job_id, "")
        st.markdown(
            f'<span class="match-badge">{match.match_score}%</span> '
            f'**{match.job_title}**{f" at {company}" if company else ""}',
            unsafe_allow_html=True,
        )
        st.markdown(match.match_reason)
        if match.concerns:
            st.caption(f"Concerns: {match.concerns}")


def render_resume_intake(orchestrator_instance: Orchestrator):
    """Upload a resume, review the parsed fields and save the applicant"""
    st.subheader("Add Applicant")
    uploaded = st.file_uploader("Resume (PDF, DOC, DOCX or TXT)", type=["pdf", "doc", "docx", "txt"])

    if uploaded is not None and st.button("Parse Resume", type="primary"):
        file_bytes = uploaded.getvalue()
        with st.spinner("📄 Reading resume..."):
            result = orchestrator_instance.parse_resume(file_bytes, uploaded.name, uploaded.type)
        if result.ok:
            st.session_state.parsed_profile = result.value
            st.session_state.parse_warnings = result.warnings
            upload = orchestrator_instance.upload_resume(file_bytes, uploaded.name, uploaded.type)
            if upload["success"]:
                st.session_state.uploaded_resume_key = upload["key"]
            else:
                st.warning(f"⚠️ {upload['error']}")
        else:
            st.session_state.parsed_profile = CandidateProfile()
            st.session_state.parse_warnings = []
            show_failure(result, "Resume parsing")

    for warning in st.session_state.parse_warnings:
        st.warning(f"⚠️ {warning}")

    profile: Optional[CandidateProfile] = st.session_state.parsed_profile
    if profile is None:
        return

    with st.form("applicant_form"):
        col1, col2 = st.columns(2)
        with col1:
            full_name = st.text_input("Full Name", profile.full_name or "")
            email = st.text_input("Email", profile.email or "")
            phone = st.text_input("Phone", profile.phone or "")
            linkedin_url = st.text_input("LinkedIn URL", profile.linkedin_url or "")
            location = st.text_input("Location", profile.location or "")
            availability = st.text_input("Availability", "")
        with col2:
            current_job_title = st.text_input("Current Job Title", profile.current_job_title or "")
            current_company = st.text_input("Current Company", profile.current_company or "")
            total_yoe = st.number_input("Years of Experience", min_value=0.0, step=0.5,
                                        value=float(profile.total_yoe or 0.0))
            primary_skill = st.text_input("Primary Skill", profile.primary_skill or "")
            secondary_skills = st.text_input("Secondary Skills (comma separated)",
                                             ", ".join(profile.secondary_skills or []))
            desired_salary = st.text_input("Desired Salary", profile.desired_salary or "")
        source = st.text_input("Source", "")
        notes = st.text_area("Notes", "")

        if st.form_submit_button("Save Applicant", type="primary"):
            applicant = Applicant(
                full_name=full_name,
                email=email,
                phone=phone,
                linkedin_url=linkedin_url,
                current_job_title=current_job_title,
                current_company=current_company,
                location=location,
                total_yoe=total_yoe or None,
                primary_skill=primary_skill,
                secondary_skills=secondary_skills,
                desired_salary=desired_salary,
                availability=availability,
                source=source,
                notes=notes,
                date_applied=date.today().isoformat(),
                resume=st.session_state.uploaded_resume_key,
            )
            with st.spinner("💾 Saving and rating applicant..."):
                result = orchestrator_instance.add_applicant(applicant)
            if not result["success"]:
                st.error(f"❌ {result['error']}")
                return
            st.success(f"✅ Added {applicant.full_name or 'applicant'}")
            analysis = result["analysis"]
            if analysis is not None and not analysis.ok:
                show_failure(analysis, "Rating")
            elif analysis is not None:
                for warning in analysis.warnings:
                    st.warning(f"⚠️ {warning}")
            st.session_state.parsed_profile = None
            st.session_state.parse_warnings = []
            st.session_state.uploaded_resume_key = None


def render_applicants(orchestrator_instance: Orchestrator, access: UserAccess):
    """Applicants page"""
    st.header("Applicants")
    snapshot = orchestrator_instance.load_snapshot()

    unrated = snapshot.unrated_applicants()
    col_sort, col_order, col_rate = st.columns([2, 1, 2])
    with col_sort:
        sort_field = st.selectbox("Sort by", list(SORT_FIELDS.keys()))
    with col_order:
        descending = st.checkbox("Descending", value=True)
    with col_rate:
        if st.button(f"Generate Ratings ({len(unrated)})", disabled=not unrated or not access.can_edit):
            with st.spinner("⭐ Generating ratings..."):
                summary = orchestrator_instance.generate_missing_ratings()
            if summary.error:
                st.error(f"❌ {summary.error}")
            else:
                st.success(f"✅ Rated {len(summary.rated)} applicant(s)")
                if summary.failed:
                    st.warning(f"⚠️ {len(summary.failed)} applicant(s) could not be rated")
                if summary.skipped:
                    st.info(f"💡 {len(summary.skipped)} applicant(s) skipped: no open job orders")
                st.rerun()

    applicants: List[Applicant] = sorted(snapshot.applicants, key=SORT_FIELDS[sort_field], reverse=descending)
    if not applicants:
        st.info("💡 No applicants yet.")

    for applicant in applicants:
        title = f"{applicant.full_name or 'Unnamed'} - {applicant.current_job_title or 'No title'} ({rating_badge(applicant.rating)})"
        with st.expander(title):
            col1, col2 = st.columns(2)
            with col1:
                st.markdown(f"**Email:** {applicant.email or 'N/A'}")
                st.markdown(f"**Phone:** {applicant.phone or 'N/A'}")
                st.markdown(f"**Location:** {applicant.location or 'N/A'}")
                st.markdown(f"**Experience:** {applicant.total_yoe if applicant.total_yoe is not None else 'N/A'} years")
                st.markdown(f"**Desired Salary:** {applicant.desired_salary or 'N/A'}")
            with col2:
                st.markdown(f"**Primary Skill:** {applicant.primary_skill or 'N/A'}")
                skills_html = "".join(f'<span class="skill-tag">{s}</span>' for s in applicant.secondary_skills or [])
                st.markdown(skills_html or "No secondary skills", unsafe_allow_html=True)
                resume_url = orchestrator_instance.resume_url(applicant)
                if resume_url:
                    st.markdown(f"[📄 View Resume]({resume_url})")

            if access.can_edit:
                status = st.selectbox("Status", APPLICANT_STATUSES,
                                      index=APPLICANT_STATUSES.index(applicant.status),
                                      key=f"status_{applicant.id}")
                if status != applicant.status:
                    orchestrator_instance.update_applicant(applicant.id, {"status": status})
                    st.rerun()

            col_analyze, col_delete = st.columns([3, 1])
            with col_analyze:
                if st.button("🔍 Analyze", key=f"analyze_{applicant.id}", disabled=not access.can_edit):
                    with st.spinner("🔍 Analyzing candidate..."):
                        result = orchestrator_instance.analyze_applicant(applicant.id)
                    if result.ok:
                        st.session_state.analyses[applicant.id] = result.value
                        for warning in result.warnings:
                            st.warning(f"⚠️ {warning}")
                    else:
                        show_failure(result, "Analysis")
            with col_delete:
                if access.can_delete and st.button("🗑️ Delete", key=f"delete_{applicant.id}"):
                    orchestrator_instance.delete_applicant(applicant.id)
                    st.session_state.analyses.pop(applicant.id, None)
                    st.rerun()

            analysis = st.session_state.analyses.get(applicant.id)
            if analysis is not None:
                display_analysis(analysis, snapshot)

    if access.can_edit:
        st.markdown("---")
        render_resume_intake(orchestrator_instance)


def render_job_orders(orchestrator_instance: Orchestrator, access: UserAccess):
    """Job orders page"""
    st.header("Job Orders")
    snapshot = orchestrator_instance.load_snapshot()

    for job in snapshot.job_orders:
        with st.expander(f"{job.job_title} - {job.client_company} ({job.status})"):
            st.markdown(f"**Priority:** {job.priority}")
            st.markdown(f"**Salary Range:** {job.salary_range or 'N/A'}")
            st.markdown(f"**Hiring Manager:** {job.hiring_manager or 'N/A'}")
            st.markdown(f"**Core Responsibilities:** {job.notes or 'No description provided.'}")
            if access.can_edit:
                status = st.selectbox("Status", JOB_STATUSES, index=JOB_STATUSES.index(job.status),
                                      key=f"job_status_{job.id}")
                if status != job.status:
                    orchestrator_instance.update_job_order(job.id, {"status": status})
                    st.rerun()

    if access.can_edit:
        with st.form("job_order_form", clear_on_submit=True):
            st.subheader("Add Job Order")
            job_title = st.text_input("Job Title")
            client_company = st.selectbox("Client", [c.company_name for c in snapshot.clients] or [""])
            salary_range = st.text_input("Salary Range")
            priority = st.selectbox("Priority", ["High", "Medium", "Low"], index=1)
            notes = st.text_area("Core Responsibilities")
            if st.form_submit_button("Add Job Order", type="primary"):
                if not job_title.strip():
                    st.warning("⚠️ Please enter a job title.")
                else:
                    orchestrator_instance.add_job_order(JobOrder(
                        job_title=job_title.strip(),
                        client_company=client_company,
                        salary_range=salary_range,
                        priority=priority,
                        notes=notes,
                        date_opened=date.today().isoformat(),
                    ))
                    st.rerun()


def render_clients(orchestrator_instance: Orchestrator, access: UserAccess):
    """Clients page"""
    st.header("Clients")
    snapshot = orchestrator_instance.load_snapshot()

    for client in snapshot.clients:
        with st.expander(f"{client.company_name} ({client.status})"):
            st.markdown(f"**Industry:** {client.industry or 'N/A'}")
            st.markdown(f"**Location:** {client.location or 'N/A'}")
            st.markdown(f"**Key Contact:** {client.key_contact or 'N/A'}")
            if client.website:
                st.markdown(f"[🌐 Website]({client.website})")

    if access.can_edit:
        with st.form("client_form", clear_on_submit=True):
            st.subheader("Add Client")
            company_name = st.text_input("Company Name")
            industry = st.text_input("Industry")
            location = st.text_input("Location")
            key_contact = st.text_input("Key Contact")
            if st.form_submit_button("Add Client", type="primary"):
                if not company_name.strip():
                    st.warning("⚠️ Please enter a company name.")
                else:
                    orchestrator_instance.add_client(Client(
                        company_name=company_name.strip(),
                        industry=industry,
                        location=location,
                        key_contact=key_contact,
                    ))
                    st.rerun()


def render_assistant(orchestrator_instance: Orchestrator):
    """AI assistant chat page"""
    st.header("AI Assistant")
    st.caption("Ask about candidates, job orders and clients. Mention \"resume\" to have resumes read.")

    for msg in st.session_state.messages:
        with st.chat_message(msg.role):
            st.markdown(msg.content)

    prompt = st.chat_input("Ask about your candidates...")
    if prompt:
        history = list(st.session_state.messages)
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                reply = orchestrator_instance.chat(prompt, history)
            st.markdown(reply.message)
            if reply.resumes_attached:
                st.caption(f"📄 Read {reply.resumes_attached} resume(s)")

        st.session_state.messages.append(ChatMessage(role="user", content=prompt))
        st.session_state.messages.append(ChatMessage(role="assistant", content=reply.message))

    if st.session_state.messages and st.button("Clear Conversation"):
        st.session_state.messages = []
        st.rerun()


def render_settings(orchestrator_instance: Orchestrator, config: Config, access: UserAccess):
    """Settings page: team members and invitations"""
    st.header("Settings")
    st.markdown(f"**Signed in as:** {access.email or 'Unknown'} ({access.role})")

    if not access.is_admin:
        st.info("💡 Only admins can manage the team.")
        return

    st.subheader("Team Members")
    for member in orchestrator_instance.list_team_members():
        st.markdown(f"- {member.name or member.email} ({member.email}) - {member.role}")

    with st.form("invite_form", clear_on_submit=True):
        st.subheader("Invite Team Member")
        name = st.text_input("Name")
        email = st.text_input("Email")
        role = st.selectbox("Role", ["Recruiter", "Viewer", "Admin"])
        if st.form_submit_button("Send Invitation", type="primary"):
            if not email.strip():
                st.warning("⚠️ Please enter an email address.")
            else:
                result = orchestrator_instance.invite_team_member(email, name, role, access.email or "")
                if not result["success"]:
                    st.error(f"❌ {result['error']}")
                elif result["email"]["success"]:
                    st.success(f"✅ Invitation sent to {email}")
                else:
                    st.warning(f"⚠️ {email} was added, but the email was not sent: {result['email']['error']}")

    with st.expander("Configuration"):
        st.json(config.get_config_status())


def main():
    """Main application"""
    orchestrator_instance, config = initialize_services()
    access = orchestrator_instance.resolve_access(config.app_user_email)

    st.sidebar.title("🤖 Recruiting ATS")
    st.sidebar.caption(config.agency_name)
    page = st.sidebar.radio("Navigate", ["Applicants", "Job Orders", "Clients", "AI Assistant", "Settings"])

    try:
        if page == "Applicants":
            render_applicants(orchestrator_instance, access)
        elif page == "Job Orders":
            render_job_orders(orchestrator_instance, access)
        elif page == "Clients":
            render_clients(orchestrator_instance, access)
        elif page == "AI Assistant":
            render_assistant(orchestrator_instance)
        else:
            render_settings(orchestrator_instance, config, access)
    except Exception as e:
        st.error(f"❌ Error loading page: {str(e)}")


if __name__ == "__main__":
    main()
