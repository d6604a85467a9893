"""
Streamlit Frontend for JournalMe

A thin shell over the orchestrator. All rules live below this layer;
the UI only parses input, calls a flow and shows the result.

DESIGN PRINCIPLES:
1. Parse and validate input before anything is written
2. Show the survival budget and shortage flag up front
3. Clear error messages in simple language
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from journalme.config import get_settings, validate_all_settings
from journalme.models.finance import LiquidityReport
from journalme.models.journal import GoalHorizon
from journalme.orchestrator import AppComponents, create_app_components
from journalme.services.storage import StorageError
from journalme.validation import (
    InvalidInputError,
    parse_amount,
    parse_date,
    parse_day_of_month,
)


st.set_page_config(
    page_title="JournalMe",
    page_icon="📓",
    layout="centered",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def money(value: Decimal) -> str:
    symbol = get_settings().app.currency_symbol
    return f"{symbol}{value:,.2f}"


def show_error(e: Exception) -> None:
    st.error(f"❌ {e}")


def render_bank(app: AppComponents) -> None:
    """Balance, survival budget, bills, income and debts."""
    report: LiquidityReport = run_async(app.monitor.current_report())

    col1, col2 = st.columns(2)
    col1.metric("Balance", money(report.balance))
    col2.metric("Net position", money(report.net_position))

    if report.is_liquidity_short:
        st.error(
            f"⚠️ Liquidity short by {money(report.worst_shortfall)}. "
            "Survival budget is zero until cash comes in."
        )
    st.metric(
        "Left to spend today",
        money(report.remaining_survival_today),
        help=f"Daily budget {money(report.daily_survival_budget)}, spent {money(report.daily_spent)}",
    )

    for issue in run_async(app.monitor.review()):
        st.caption(f"• {issue.message}")

    with st.expander("Edit balance"):
        raw = st.text_input("New balance", value=str(report.balance))
        if st.button("Save balance"):
            try:
                run_async(app.finance.update_balance(parse_amount(raw, "balance", allow_zero=True, allow_negative=True)))
                st.rerun()
            except InvalidInputError as e:
                show_error(e)

    st.subheader("Today's spends")
    with st.form("spend", clear_on_submit=True):
        label = st.text_input("What for?")
        raw_amount = st.text_input("Amount")
        if st.form_submit_button("Log spend"):
            try:
                run_async(app.finance.log_spend(label, parse_amount(raw_amount)))
                st.rerun()
            except (InvalidInputError, ValueError) as e:
                show_error(e)

    spend_state = run_async(app.finance.get_snapshot()).spend_state
    for item in spend_state.spend_list:
        c1, c2 = st.columns([4, 1])
        c1.write(f"{item.label}: {money(item.amount)}")
        if c2.button("Undo", key=f"undo-{item.id}"):
            run_async(app.finance.reverse_spend(item.id))
            st.rerun()

    st.subheader("Bills (jails)")
    for schedule in report.schedules:
        ob = schedule.obligation
        c1, c2 = st.columns([4, 1])
        c1.write(
            f"{'🔴' if schedule.is_short else '🟢'} **{ob.label}** {money(ob.amount)} "
            f"due {schedule.due_date:%d %b} ({schedule.days_until}d) · "
            f"set aside {money(schedule.daily_cost)}/day"
        )
        if c2.button("Remove", key=f"ob-{ob.id}"):
            run_async(app.finance.remove_obligation(ob.id))
            st.rerun()
    with st.form("obligation", clear_on_submit=True):
        label = st.text_input("Bill name")
        raw_amount = st.text_input("Monthly amount")
        raw_day = st.text_input("Due day (1-31)")
        if st.form_submit_button("Add bill"):
            try:
                run_async(app.finance.add_obligation(
                    label, parse_amount(raw_amount), parse_day_of_month(raw_day)
                ))
                st.rerun()
            except (InvalidInputError, ValueError) as e:
                show_error(e)

    st.subheader("Expected income")
    snapshot = run_async(app.finance.get_snapshot())
    for income in snapshot.expected_income:
        c1, c2 = st.columns([4, 1])
        when = income.expected_date.strftime("%d %b") if income.expected_date else "someday"
        c1.write(f"{income.label}: {money(income.amount)} ({when})")
        if c2.button("Received", key=f"in-{income.id}"):
            run_async(app.finance.clear_income(income.id))
            st.rerun()
    st.caption(f"Pipeline (after all deadlines): {money(report.pipeline_income)}")
    with st.form("income", clear_on_submit=True):
        label = st.text_input("From")
        raw_amount = st.text_input("Amount")
        raw_date = st.text_input("Expected date (YYYY-MM-DD, optional)")
        if st.form_submit_button("Add income"):
            try:
                run_async(app.finance.add_expected_income(
                    label, parse_amount(raw_amount), parse_date(raw_date, "expected_date")
                ))
                st.rerun()
            except (InvalidInputError, ValueError) as e:
                show_error(e)

    st.subheader("Debts")
    for debt in snapshot.debts:
        st.write(f"**{debt.label}**: {money(debt.remaining)} left")
        st.progress(debt.progress)
        raw = st.text_input("Payment", key=f"pay-{debt.id}")
        if st.button("Log payment", key=f"paybtn-{debt.id}"):
            try:
                run_async(app.finance.log_debt_payment(debt.id, parse_amount(raw, "payment")))
                st.rerun()
            except (InvalidInputError, ValueError, StorageError) as e:
                show_error(e)
    with st.form("debt", clear_on_submit=True):
        label = st.text_input("Debt name")
        raw_amount = st.text_input("Total owed")
        if st.form_submit_button("Add debt"):
            try:
                run_async(app.finance.add_debt(label, parse_amount(raw_amount)))
                st.rerun()
            except (InvalidInputError, ValueError) as e:
                show_error(e)


def render_tasks(app: AppComponents) -> None:
    st.metric("Points", run_async(app.tasks.get_points()))

    for task in run_async(app.tasks.list_tasks()):
        c1, c2 = st.columns([5, 1])
        done = c1.checkbox(task.label, value=task.completed, key=f"task-{task.id}")
        if done != task.completed:
            run_async(app.tasks.set_completed(task.id, done))
            st.rerun()
        if c2.button("🗑️", key=f"deltask-{task.id}", help="Unfinished tasks cost points when deleted"):
            run_async(app.tasks.delete_task(task.id))
            st.rerun()

    with st.form("task", clear_on_submit=True):
        label = st.text_input("New task")
        if st.form_submit_button("Add") and label.strip():
            run_async(app.tasks.add_task(label))
            st.rerun()

    if st.button("✨ Suggest tasks"):
        suggestion = run_async(app.suggest_tasks(date.today()))
        for task in suggestion.tasks:
            st.write(f"• {task}")


def render_journal(app: AppComponents) -> None:
    with st.form("entry", clear_on_submit=True):
        content = st.text_area("Practice moderation today...")
        if st.form_submit_button("Save reflection") and content.strip():
            run_async(app.journal.add_entry(content))
            st.rerun()

    query = st.text_input("Search thoughts...")
    for entry in run_async(app.journal.search_entries(query)):
        c1, c2 = st.columns([5, 1])
        c1.write(entry.content)
        c1.caption(entry.created_at.strftime("%d %b %Y"))
        if c2.button("🗑️", key=f"delentry-{entry.id}"):
            run_async(app.journal.delete_entry(entry.id))
            st.rerun()


def render_goals(app: AppComponents) -> None:
    for goal in run_async(app.goals.list_goals()):
        c1, c2 = st.columns([5, 1])
        done = c1.checkbox(f"[{goal.horizon.value}] {goal.label}", value=goal.completed, key=f"goal-{goal.id}")
        if done != goal.completed:
            run_async(app.goals.toggle_goal(goal.id))
            st.rerun()
        if c2.button("🗑️", key=f"delgoal-{goal.id}"):
            run_async(app.goals.delete_goal(goal.id))
            st.rerun()

    with st.form("goal", clear_on_submit=True):
        label = st.text_input("Goal")
        horizon = st.selectbox("Horizon", [h.value for h in GoalHorizon])
        if st.form_submit_button("Add goal") and label.strip():
            run_async(app.goals.add_goal(label, GoalHorizon(horizon)))
            st.rerun()


def render_settings_status() -> None:
    """Show which settings sections loaded."""
    st.markdown("### Settings")
    status = validate_all_settings()
    for name in ("app", "gamification", "gemini"):
        if status.get(name):
            st.caption(f"✅ {name}")
        else:
            st.caption(f"⚠️ {name}: {status.get(f'{name}_error', 'not configured')}")


def main():
    """Main application entry point."""
    app = get_components()

    outcome = run_async(app.run_startup_jobs())
    if outcome.tasks_judged and outcome.penalty:
        st.toast(f"New day: {outcome.missed_tasks} missed tasks cost {outcome.penalty} points")

    st.title("📓 JournalMe")
    bank, tasks, journal, goals = st.tabs(["💰 Bank", "✅ Tasks", "✍️ Journal", "🎯 Goals"])
    with bank:
        render_bank(app)
    with tasks:
        render_tasks(app)
    with journal:
        render_journal(app)
    with goals:
        render_goals(app)

    with st.sidebar:
        if st.button("Prepare backup"):
            filename, text = run_async(app.backup.export())
            st.download_button("⬇️ Download backup", text, file_name=filename, mime="application/json")
        uploaded = st.file_uploader("Restore backup", type="json")
        if uploaded is not None and st.button("Restore"):
            try:
                run_async(app.backup.restore(uploaded.read().decode("utf-8")))
                st.success("✅ Backup restored")
            except StorageError as e:
                show_error(e)

        render_settings_status()


if __name__ == "__main__":
    main()
