"""
Streamlit UI for the Proposal Tool.

Features:
- Proposal builder: buyer/lot form, grouped upgrade choices, special requests
- Live order summary with a password-protected cost view
- Auto-save of the open proposal
- Proposal list with archive, duplicate and delete
- Excel/PDF purchase order downloads
- Template overview and selection sheet import
"""
import streamlit as st
import pandas as pd
import sys
from pathlib import Path
from datetime import datetime
from types import SimpleNamespace

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from proposal_tool.config.settings import configure_logging, get_settings
from proposal_tool.data.import_selections import import_all_selections, seed_templates
from proposal_tool.db.database import get_session_factory, init_db
from proposal_tool.engine.formatting import format_currency, format_margin, format_money
from proposal_tool.engine.grouping import selection_key
from proposal_tool.engine.selection import toggle_selection
from proposal_tool.export.document import export_filename
from proposal_tool.export.excel_export import XLSX_MIME, build_workbook
from proposal_tool.export.pdf_export import PDF_MIME, build_pdf
from proposal_tool.services.autosave import ERROR, SAVED, SAVING, AutoSaver
from proposal_tool.services.catalog_service import CatalogService
from proposal_tool.services.community_service import CommunityService
from proposal_tool.services.proposal_service import ProposalService, today_str


st.set_page_config(
    page_title="Proposal Tool",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_settings_cached():
    """Get cached settings."""
    settings = get_settings()
    configure_logging(settings)
    return settings


@st.cache_resource
def get_sessions():
    """Create tables once and return the session factory."""
    init_db()
    factory = get_session_factory()
    with factory() as session:
        seed_templates(session)
    return factory


try:
    settings = get_settings_cached()
    sessions = get_sessions()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


def _create_proposal(payload: dict) -> int:
    with sessions() as session:
        return ProposalService(session).create_proposal(payload).id


def _update_proposal(proposal_id: int, payload: dict):
    with sessions() as session:
        ProposalService(session).update_proposal(proposal_id, payload)


def blank_form(template=None) -> dict:
    return {
        'todays_date': today_str(),
        'buyer_last_name': '',
        'community': '',
        'lot_number': '',
        'lot_address': '',
        'house_plan': template.name if template else '',
        'base_price': float(template.base_price) if template else 0.0,
        'lot_premium': 0.0,
        'sales_incentive': 0.0,
        'sales_incentive_enabled': False,
        'design_studio_allowance': 0.0,
    }


def open_proposal(proposal):
    """Load a saved proposal into the builder."""
    st.session_state.form_version = st.session_state.get("form_version", 0) + 1
    st.session_state.form = {k: getattr(proposal, k) for k in blank_form()}
    st.session_state.selected = list(proposal.selected_upgrades or [])
    st.session_state.saver = AutoSaver(_create_proposal, _update_proposal,
                                       settings.autosave_debounce_seconds, proposal_id=proposal.id)
    st.session_state.last_payload = None


def new_proposal(template=None):
    st.session_state.form_version = st.session_state.get("form_version", 0) + 1
    st.session_state.form = blank_form(template)
    st.session_state.selected = []
    st.session_state.saver = AutoSaver(_create_proposal, _update_proposal, settings.autosave_debounce_seconds)
    st.session_state.last_payload = None


if 'form' not in st.session_state:
    new_proposal()
if 'show_costs' not in st.session_state:
    st.session_state.show_costs = False

# One session per browser tab, reset on every rerun
if 'db_session' not in st.session_state:
    st.session_state.db_session = sessions()
session = st.session_state.db_session
session.close()
catalog = CatalogService(session)
proposals = ProposalService(session)
communities = CommunityService(session)
saver: AutoSaver = st.session_state.saver
form = st.session_state.form


# ============================================================================
# CUSTOM CSS & STYLING
# ============================================================================
st.markdown("""
    <style>
        .block-container {
            padding-top: 2rem;
            padding-bottom: 2rem;
        }
        h1 {
            font-family: 'Helvetica Neue', Helvetica, Arial, sans-serif;
            font-weight: 700;
        }
        .stMetric {
            background-color: #f0f2f6;
            padding: 10px;
            border-radius: 5px;
            border-left: 5px solid #366092;
        }
        [data-testid="stSidebar"] {
            background-color: #f8f9fa;
        }
    </style>
""", unsafe_allow_html=True)

# ============================================================================
# SIDEBAR: Template & Cost View
# ============================================================================
templates = catalog.list_templates()

with st.sidebar:
    st.header("🏠 Home Template")

    with st.container(border=True):
        names = [t.name for t in templates]
        current = names.index(form['house_plan']) if form['house_plan'] in names else None
        choice = st.selectbox("House Plan", options=names, index=current, placeholder="Choose a plan...")
        template = next((t for t in templates if t.name == choice), None)

        if template is not None:
            st.caption(f"{template.beds} • {template.baths} • {template.garage} • {template.sqft:,} sq ft")
            st.markdown(f"**Base Price:** {format_currency(template.base_price)}")
            if choice != form['house_plan']:
                # Switching plans resets the base price and clears selections
                form['house_plan'] = template.name
                form['base_price'] = float(template.base_price)
                st.session_state.selected = []

    if st.button("➕ New Proposal", use_container_width=True):
        saver.flush()
        new_proposal(template)
        st.rerun()

    st.divider()

    st.header("🔒 Cost View")
    if st.session_state.show_costs:
        st.success("Cost view unlocked")
        if st.button("Hide Costs"):
            st.session_state.show_costs = False
            st.session_state.pop("cost_password", None)
            st.rerun()
    else:
        password = st.text_input("Password", type="password", key="cost_password")
        if password:
            if password == settings.cost_view_password:
                st.session_state.show_costs = True
                st.rerun()
            else:
                st.error("Incorrect password")

    st.divider()

    # Auto-save status
    if saver.status == SAVING or saver.has_pending:
        st.info("💾 Saving...")
    elif saver.status == SAVED:
        st.success(f"✅ Saved (proposal #{saver.proposal_id})")
        saver.reset_status()
    elif saver.status == ERROR:
        st.error(f"⚠️ {saver.error_message}")
    elif saver.proposal_id:
        st.caption(f"Proposal #{saver.proposal_id}")
    else:
        st.caption("Not saved yet. Enter a buyer name to start auto-save.")


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("Proposal Tool")
st.caption(f"v1.0 | {settings.company_name} | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2, tab3 = st.tabs(["📝 Proposal Builder", "📂 Proposals", "🏗️ Templates"])


# ============================================================================
# TAB 1: PROPOSAL BUILDER
# ============================================================================
with tab1:
    col1, col2 = st.columns([1.8, 1.2], gap="large")

    with col1:
        st.subheader("Buyer & Lot")

        with st.container(border=True):
            c1, c2 = st.columns(2)
            form['todays_date'] = c1.text_input("Date", value=form['todays_date'])
            form['buyer_last_name'] = c2.text_input("Buyer's Last Name", value=form['buyer_last_name'])

            community_list = communities.list_communities()
            if community_list:
                community_names = [c.name for c in community_list]
                idx = community_names.index(form['community']) if form['community'] in community_names else None
                picked = c1.selectbox("Community", options=community_names, index=idx)
                form['community'] = picked or ''
                community = next((c for c in community_list if c.name == picked), None)
                lots = communities.list_lots(community.slug) if community else []
                lot_numbers = [lot.lot_number for lot in lots if lot.is_available or lot.lot_number == form['lot_number']]
                if lot_numbers:
                    idx = lot_numbers.index(form['lot_number']) if form['lot_number'] in lot_numbers else None
                    lot_number = c2.selectbox("Lot Number", options=lot_numbers, index=idx)
                    lot = next((item for item in lots if item.lot_number == lot_number), None)
                    if lot is not None and lot_number != form['lot_number']:
                        form['lot_number'] = lot.lot_number
                        form['lot_address'] = lot.address or form['lot_address']
                        form['lot_premium'] = float(lot.premium or 0)
                else:
                    form['lot_number'] = c2.text_input("Lot Number", value=form['lot_number'])
            else:
                form['community'] = c1.text_input("Community", value=form['community'])
                form['lot_number'] = c2.text_input("Lot Number", value=form['lot_number'])

            form['lot_address'] = st.text_input("Lot Address", value=form['lot_address'])

            c1, c2 = st.columns(2)
            form['base_price'] = c1.number_input("Base Price", value=float(form['base_price']), step=1000.0)
            form['lot_premium'] = c2.number_input("Lot Premium", value=float(form['lot_premium']), step=500.0)
            form['sales_incentive_enabled'] = c1.checkbox("Apply Sales Incentive",
                                                          value=bool(form['sales_incentive_enabled']))
            form['sales_incentive'] = c2.number_input("Sales Incentive", value=float(form['sales_incentive']),
                                                      step=500.0, disabled=not form['sales_incentive_enabled'])
            form['design_studio_allowance'] = st.number_input("Design Studio Allowance",
                                                              value=float(form['design_studio_allowance']),
                                                              step=500.0)

        st.subheader("Upgrades")

        if not form['house_plan']:
            st.info("Choose a house plan in the sidebar to see its upgrades.")
        else:
            records = catalog.upgrade_records(form['house_plan'])
            by_id = {u.id: u for u in records}
            grouped = catalog.grouped_upgrades(form['house_plan'])
            selected = st.session_state.selected

            if not grouped:
                st.warning(f"No upgrades imported for {form['house_plan']}.")

            for category, locations in grouped.items():
                count = sum(1 for sid in selected if sid in by_id and by_id[sid].category == category)
                label = f"{category} ({count} selected)" if count else category
                with st.expander(label):
                    for location, parents in locations.items():
                        st.markdown(f"**{location}**")
                        for parent, options in parents.items():
                            current_id = next((u.id for u in options if u.id in selected), None)
                            ids = [None] + [u.id for u in options]
                            chosen = st.radio(
                                parent,
                                options=ids,
                                index=ids.index(current_id),
                                format_func=lambda uid: "None" if uid is None else
                                f"{by_id[uid].choice_title} ({format_currency(by_id[uid].client_price)})",
                                key=f"upg_{st.session_state.form_version}_{form['house_plan']}_{'|'.join(selection_key(options[0]))}",
                            )
                            if chosen != current_id:
                                target = chosen if chosen is not None else current_id
                                updated = toggle_selection(selected, target, records)
                                st.session_state.selected = [s for s in selected if s in updated] + \
                                    [s for s in updated if s not in selected]
                                st.rerun()

        st.subheader("Special Requests")

        with st.container(border=True):
            if not saver.proposal_id:
                st.caption("Special requests can be added once the proposal has been saved.")
            else:
                for sr in proposals.list_special_requests(saver.proposal_id):
                    c1, c2, c3, c4 = st.columns([3, 1, 1, 0.5])
                    c1.write(sr.description)
                    c2.write(format_currency(sr.client_price))
                    if st.session_state.show_costs:
                        c3.caption(f"Cost {format_money(sr.builder_cost)}")
                    if c4.button("🗑️", key=f"sr_del_{sr.id}"):
                        proposals.delete_special_request(sr.id)
                        st.rerun()

                with st.form("special_request", clear_on_submit=True):
                    description = st.text_input("Description")
                    c1, c2 = st.columns(2)
                    client_price = c1.number_input("Client Price", value=0.0, step=100.0)
                    builder_cost = c2.number_input("Builder Cost", value=0.0, step=100.0)
                    if st.form_submit_button("➕ Add Request") and description.strip():
                        proposals.create_special_request({
                            'proposal_id': saver.proposal_id,
                            'description': description.strip(),
                            'client_price': client_price,
                            'builder_cost': builder_cost,
                        })
                        st.rerun()

    # Auto-save the current form once a buyer is named
    payload = dict(form, selected_upgrades=list(st.session_state.selected))
    if form['buyer_last_name'].strip() and payload != st.session_state.last_payload:
        st.session_state.last_payload = payload
        saver.schedule(payload)

    with col2:
        st.subheader("Order Summary")

        show_costs = st.session_state.show_costs
        # Priced from the form so the summary does not wait for auto-save
        specials = []
        if saver.proposal_id:
            specials = [
                {'description': sr.description, 'builder_cost': sr.builder_cost, 'client_price': sr.client_price}
                for sr in proposals.list_special_requests(saver.proposal_id)
            ]
        record = SimpleNamespace(**form)
        summary = proposals.preview(dict(payload, special_requests=specials), show_costs=show_costs)

        with st.container(border=True):
            m1, m2 = st.columns(2)
            m1.metric("Grand Total", format_currency(summary.grand_total))
            m2.metric("Upgrades", len(summary.upgrade_lines))

            st.divider()
            st.markdown(f"Base Price: **{format_currency(summary.base_price)}**")
            if summary.lot_premium:
                st.markdown(f"Lot Premium: **{format_currency(summary.lot_premium)}**")
            if summary.sales_incentive:
                st.markdown(f"Sales Incentive: **{format_currency(summary.sales_incentive)}**")
            st.markdown(f"Base Subtotal: **{format_currency(summary.base_subtotal)}**")
            if summary.design_studio_allowance:
                st.markdown(f"Design Studio Allowance: **{format_currency(summary.design_studio_allowance)}**")
            st.markdown(f"Upgrades: **{format_currency(summary.upgrades_total)}**")
            if summary.special_requests_total:
                st.markdown(f"Special Requests: **{format_currency(summary.special_requests_total)}**")
            st.markdown(f"Selections Subtotal: **{format_currency(summary.selections_subtotal)}**")

            if show_costs:
                st.divider()
                st.caption("**Cost View**")
                for label, value in (
                    ("Base Cost", summary.base_cost),
                    ("Upgrades Cost", summary.upgrades_cost),
                    ("Special Requests Cost", summary.special_requests_cost),
                    ("Total Cost", summary.total_cost),
                ):
                    st.caption(f"{label}: {format_money(value)}")
                text, positive = format_margin(summary.overall_margin)
                st.markdown(f"Overall Margin: :{'green' if positive else 'red'}[**{text}**]")

            for warning in summary.warnings:
                st.warning(warning)

            st.divider()

            btn_col1, btn_col2 = st.columns(2)
            with btn_col1:
                st.download_button(
                    "📥 Excel",
                    data=build_workbook(record, summary, settings),
                    file_name=export_filename(record, "xlsx"),
                    mime=XLSX_MIME,
                    use_container_width=True
                )
            with btn_col2:
                st.download_button(
                    "📄 PDF",
                    data=build_pdf(record, summary, settings),
                    file_name=export_filename(record, "pdf"),
                    mime=PDF_MIME,
                    use_container_width=True
                )

        if summary.lines:
            with st.expander("📊 View Line Items"):
                st.dataframe(pd.DataFrame([{
                    'Category': line.category,
                    'Option': line.title,
                    'Price': format_currency(line.client_price),
                    **({'Cost': format_money(line.builder_cost), 'Margin': f"{line.margin:.2f}%"} if show_costs else {}),
                } for line in summary.lines]), use_container_width=True, hide_index=True)

        with st.expander("🔍 Calculation Trace"):
            st.text(summary.get_trace_text())


# ============================================================================
# TAB 2: PROPOSALS
# ============================================================================
def proposal_table(rows):
    return pd.DataFrame([{
        'ID': p.id,
        'Date': p.todays_date,
        'Buyer': p.buyer_last_name,
        'Community': p.community,
        'Lot': p.lot_number,
        'Plan': p.house_plan,
        'Total': format_currency(p.total_price),
    } for p in rows])


with tab2:
    st.subheader("📂 Active Proposals")

    active = proposals.list_proposals(archived=False)
    if active:
        st.dataframe(proposal_table(active), use_container_width=True, hide_index=True)

        by_label = {f"#{p.id} {p.buyer_last_name} ({p.house_plan})": p for p in active}
        picked = st.selectbox("Proposal", options=list(by_label), label_visibility="collapsed")
        target = by_label[picked]

        c1, c2, c3, c4 = st.columns(4)
        if c1.button("✏️ Open", use_container_width=True):
            saver.flush()
            open_proposal(target)
            st.rerun()
        if c2.button("📑 Duplicate", use_container_width=True):
            copy = proposals.duplicate_proposal(target.id)
            st.toast(f"Created proposal #{copy.id}")
            st.rerun()
        if c3.button("🗄️ Archive", use_container_width=True):
            proposals.archive_proposal(target.id)
            st.rerun()
        if c4.button("🗑️ Delete", use_container_width=True):
            if saver.proposal_id == target.id:
                saver.cancel()
                new_proposal()
            proposals.delete_proposal(target.id)
            st.rerun()
    else:
        st.info("No proposals yet.")

    with st.expander("🗄️ Archived Proposals"):
        archived = proposals.list_proposals(archived=True)
        if archived:
            st.dataframe(proposal_table(archived), use_container_width=True, hide_index=True)
            by_label = {f"#{p.id} {p.buyer_last_name} ({p.house_plan})": p for p in archived}
            picked = st.selectbox("Archived proposal", options=list(by_label), label_visibility="collapsed")
            if st.button("♻️ Unarchive"):
                proposals.unarchive_proposal(by_label[picked].id)
                st.rerun()
        else:
            st.caption("Nothing archived.")


# ============================================================================
# TAB 3: TEMPLATES & IMPORT
# ============================================================================
with tab3:
    st.header("Home Templates")

    st.dataframe(pd.DataFrame([{
        'Plan': t.name,
        'Base Price': format_currency(t.base_price),
        **({'Base Cost': format_currency(t.base_cost)} if st.session_state.show_costs else {}),
        'Beds': t.beds,
        'Baths': t.baths,
        'Garage': t.garage,
        'Sq Ft': t.sqft,
        'Upgrades': len(catalog.list_upgrades(t.name)),
    } for t in templates]), use_container_width=True, hide_index=True)

    st.divider()
    st.subheader("Selection Sheets")
    if settings.selection_sheets:
        for name, path in settings.selection_sheets.items():
            st.caption(f"**{name}** ← {path.name}")
    else:
        st.caption(f"No selection sheets found in {settings.selections_dir}")

    if st.button("🔨 Import Selection Sheets", type="secondary"):
        with st.spinner("Importing..."):
            result = import_all_selections(session, settings, verbose=False)
        for name, report in result['templates'].items():
            if report['status'] == 'success':
                st.success(f"{name}: {report['metrics']['upgrades_imported']} upgrades imported")
            else:
                st.error(f"{name}: {'; '.join(report['errors'])}")
            for warning in report['warnings']:
                st.warning(f"{name}: {warning}")
