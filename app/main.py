"""
Streamlit Frontend for Vision Board

This is the board users interact with: a hero carousel with totals,
a category filter, one card per wish and the create/edit form.

DESIGN PRINCIPLES:
1. Nothing AI-related can break the page - generation always returns something
2. Destructive actions are confirmed first
3. One request in flight per action: the triggering button is disabled
   until its request is done
4. All changes go through WishBoardFlow; the page never touches storage
"""

import asyncio
import html
import time
from datetime import date
from typing import Optional

import streamlit as st

from visionboard.config import get_settings, validate_all_settings
from visionboard.models.wish import (
    ALL_CATEGORIES_FILTER,
    Importance,
    TITLE_MAX_LENGTH,
    Wish,
    WishCategory,
    WishDraft,
)
from visionboard.orchestrator import WishBoardFlow, create_app_components
from visionboard.queries import filter_categories, format_amount, hero_wish
from visionboard.validation import WishInputError
from visionboard.validation.validator import parse_target_date


PAGE_BOARD = "🎯 Tablero"
PAGE_FORM = "✨ Nueva Meta"
PAGE_SETTINGS = "⚙️ Configuración"

# Page configuration
st.set_page_config(
    page_title="Vision Board",
    page_icon="✨",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 6px;
    }
    .hero-box {
        padding: 24px;
        background: linear-gradient(135deg, #0b0b12 0%, #1c1a12 100%);
        border-radius: 16px;
        border-left: 5px solid #d4af37;
        color: #f5f0e8;
        margin-bottom: 16px;
    }
    .celebration-box {
        padding: 24px;
        background-color: #fff8e1;
        border-radius: 16px;
        border-left: 5px solid #d4af37;
        margin: 10px 0;
        text-align: center;
    }
    .danger-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .plan-badge {
        font-size: 0.8em;
        color: #d4af37;
        font-weight: bold;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #d4af37;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components(use_storage=True)


# =============================================================================
# SESSION STATE
# =============================================================================

FORM_DEFAULTS = {
    "form_title": "",
    "form_desc": "",
    "form_cost": None,
    "form_prompt": "",
    "form_category": WishCategory.OTHER,
    "form_importance": Importance.MEDIUM,
    "form_image": "",
    "form_date": None,
    "form_plan": "",
    "editing_wish_id": None,
}


def init_state():
    defaults = {
        "nav_page": PAGE_BOARD,
        "selected_category": ALL_CATEGORIES_FILTER,
        "hero_index": 0,
        "wish_to_delete": None,
        "celebrating_wish": None,
        # In-flight action on the form: None, "regenerate", "plan" or "submit"
        "pending_action": None,
        # Results staged for the next run (widget values can't change after render)
        "staged_plan": None,
        "form_errors": [],
        "return_to_board": False,
    }
    for key, value in {**FORM_DEFAULTS, **defaults}.items():
        if key not in st.session_state:
            st.session_state[key] = value


def reset_form():
    for key, value in FORM_DEFAULTS.items():
        st.session_state[key] = value
    st.session_state.form_errors = []


def open_create_form():
    reset_form()
    st.session_state.nav_page = PAGE_FORM


def close_form():
    reset_form()
    st.session_state.nav_page = PAGE_BOARD


def open_edit_form(wish: Wish):
    st.session_state.editing_wish_id = wish.id
    st.session_state.form_title = wish.title
    st.session_state.form_desc = wish.description
    st.session_state.form_cost = wish.target_amount
    st.session_state.form_category = wish.category
    st.session_state.form_importance = wish.importance or Importance.MEDIUM
    st.session_state.form_image = wish.image_url
    st.session_state.form_date = parse_target_date(wish.target_date) if wish.target_date else None
    st.session_state.form_plan = wish.action_plan or ""
    st.session_state.form_prompt = ""
    st.session_state.form_errors = []
    st.session_state.nav_page = PAGE_FORM


def current_draft() -> WishDraft:
    """Build a WishDraft from the form widgets."""
    target_date: Optional[date] = st.session_state.form_date
    return WishDraft(
        title=st.session_state.form_title,
        description=st.session_state.form_desc,
        target_amount=st.session_state.form_cost,
        category=st.session_state.form_category,
        importance=st.session_state.form_importance,
        prompt=st.session_state.form_prompt,
        image_url=st.session_state.form_image,
        target_date=target_date.isoformat() if target_date else None,
        action_plan=st.session_state.form_plan,
    )


def main():
    """Main application entry point."""
    init_state()
    flow, _ = get_components()

    # A saved form closes on the next run, before any widget is created
    if st.session_state.return_to_board:
        st.session_state.return_to_board = False
        close_form()

    st.sidebar.title("✨ Vision Board")
    st.sidebar.markdown("---")

    st.sidebar.radio(
        "Navegar a:",
        [PAGE_BOARD, PAGE_FORM, PAGE_SETTINGS],
        key="nav_page",
    )

    st.sidebar.markdown("---")
    if flow.is_ai_online():
        st.sidebar.success("🟢 IA conectada")
    else:
        st.sidebar.warning("🟡 Modo demo: imágenes curadas y plan genérico")

    st.sidebar.markdown(
        """
        **Cómo usarlo:**
        1. Crea una meta con su costo
        2. Genera su imagen y su plan
        3. Inyecta capital hasta completarla
        """
    )

    page = st.session_state.nav_page
    if page == PAGE_BOARD:
        render_board_page(flow)
    elif page == PAGE_FORM:
        render_form_page(flow)
    elif page == PAGE_SETTINGS:
        render_settings_page(flow)


# =============================================================================
# BOARD
# =============================================================================

def render_board_page(flow: WishBoardFlow):
    store = flow.store

    render_celebration()
    render_delete_confirmation(flow)
    render_hero(flow)

    st.button("➕ Nueva Meta", type="primary", on_click=open_create_form)

    st.radio(
        "Categoría",
        filter_categories(),
        key="selected_category",
        horizontal=True,
        label_visibility="collapsed",
    )

    wishes = store.filter_by_category(st.session_state.selected_category)
    if not wishes:
        st.info("No hay metas en esta categoría todavía.")
        return

    columns = st.columns(3)
    for index, wish in enumerate(wishes):
        with columns[index % 3]:
            render_wish_card(flow, wish)


def render_celebration():
    wish: Optional[Wish] = st.session_state.celebrating_wish
    if not wish:
        return

    st.balloons()
    st.markdown(f"""
    <div class="celebration-box">
        <h2>🏆 ¡META LOGRADA!</h2>
        <h3>{html.escape(wish.title)}</h3>
        <p>Has demostrado que con visión y disciplina, el éxito es inevitable.<br/>
        Tu imperio sigue creciendo.</p>
    </div>
    """, unsafe_allow_html=True)

    if st.button("CONTINUAR EL LEGADO"):
        st.session_state.celebrating_wish = None
        st.rerun()


def render_delete_confirmation(flow: WishBoardFlow):
    wish_id = st.session_state.wish_to_delete
    if not wish_id:
        return

    st.markdown("""
    <div class="danger-box">
        <h4>🗑️ ¿Eliminar esta meta?</h4>
        <p>Esta acción eliminará permanentemente esta visión de tu tablero. Es irreversible.</p>
    </div>
    """, unsafe_allow_html=True)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Cancelar"):
            st.session_state.wish_to_delete = None
            st.rerun()
    with col2:
        if st.button("Eliminar", type="primary"):
            flow.delete(wish_id)
            st.session_state.wish_to_delete = None
            st.rerun()


def render_hero(flow: WishBoardFlow):
    store = flow.store
    summary = store.summary()
    # Rotates with wall-clock time on each rerun; "Siguiente" skips ahead
    rotation = get_settings().app.hero_rotation_seconds
    step = int(time.time() // rotation) + st.session_state.hero_index
    current = hero_wish(store.wishes, step)

    if current is None:
        st.markdown("""
        <div class="hero-box">
            <h1>Tu visión empieza aquí</h1>
            <p>Comienza tu primera meta abajo</p>
        </div>
        """, unsafe_allow_html=True)
    else:
        col_img, col_text = st.columns([2, 3])
        with col_img:
            st.image(current.image_url, use_container_width=True)
        with col_text:
            st.caption(current.category.value.upper())
            st.header(current.title)
            if current.description:
                st.write(current.description)
            st.markdown("**Meta Actual**")
            st.progress(current.progress_percent / 100)
            st.caption(
                f"{format_amount(current.saved_amount)} de {format_amount(current.target_amount)}"
                + (f" · 📅 {current.target_date}" if current.target_date else "")
            )
            if len(store.active_wishes()) > 1 and st.button("Siguiente ▶"):
                st.session_state.hero_index += 1
                st.rerun()

    col1, col2, col3 = st.columns(3)
    col1.metric("Patrimonio ahorrado", format_amount(summary.total_saved))
    col2.metric("Meta total", format_amount(summary.total_target))
    col3.metric("Progreso", f"{summary.total_progress:.0f}%")
    st.progress(min(summary.total_progress, 100) / 100)


def render_wish_card(flow: WishBoardFlow, wish: Wish):
    with st.container(border=True):
        st.image(wish.image_url, use_container_width=True)

        if wish.is_completed:
            st.success("✅ Completado")

        caption = wish.category.value
        if wish.target_date:
            caption += f" · 📅 {wish.target_date}"
        st.caption(caption)
        st.subheader(wish.title)

        if wish.action_plan:
            st.markdown('<span class="plan-badge">🧠 Plan Estratégico Activo</span>', unsafe_allow_html=True)

        st.progress(wish.progress_percent / 100)
        st.caption(
            f"Ahorrado {format_amount(wish.saved_amount)} · "
            f"Faltan {format_amount(wish.remaining_amount)}"
        )

        if not wish.is_completed:
            amount = st.number_input(
                "Monto",
                min_value=0.0,
                value=None,
                key=f"amount_{wish.id}",
                label_visibility="collapsed",
                placeholder="Monto",
            )
            if st.button("💰 Inyectar Capital", key=f"save_{wish.id}"):
                try:
                    flow.add_savings(wish.id, amount)
                    st.rerun()
                except WishInputError as e:
                    st.warning(str(e))

            if wish.is_fully_funded and st.button("✔️ Completar", key=f"complete_{wish.id}"):
                st.session_state.celebrating_wish = flow.complete(wish.id)
                st.rerun()

        col1, col2 = st.columns(2)
        with col1:
            st.button("✏️ Editar", key=f"edit_{wish.id}", on_click=open_edit_form, args=(wish,))
        with col2:
            if st.button("🗑️ Eliminar", key=f"delete_{wish.id}"):
                st.session_state.wish_to_delete = wish.id
                st.rerun()


# =============================================================================
# CREATE / EDIT FORM
# =============================================================================

def request_action(action: str):
    st.session_state.pending_action = action
    st.session_state.form_errors = []


def render_form_page(flow: WishBoardFlow):
    # Apply results staged by the previous run before widgets are created
    if st.session_state.staged_plan is not None:
        st.session_state.form_plan = st.session_state.staged_plan
        st.session_state.staged_plan = None

    editing = st.session_state.editing_wish_id is not None
    busy = st.session_state.pending_action is not None

    st.title("✏️ Editar Meta" if editing else "✨ Nueva Meta")

    for message in st.session_state.form_errors:
        st.error(message)

    col1, col2 = st.columns([3, 2])

    with col1:
        st.text_input("Título *", key="form_title", max_chars=TITLE_MAX_LENGTH, disabled=busy)
        st.text_area("Descripción", key="form_desc", disabled=busy)
        st.number_input("Costo *", min_value=0.0, step=100.0, key="form_cost", disabled=busy)
        st.selectbox(
            "Categoría",
            options=list(WishCategory),
            key="form_category",
            format_func=lambda c: c.value,
            disabled=busy,
        )
        st.selectbox(
            "Importancia",
            options=list(Importance),
            key="form_importance",
            format_func=lambda i: i.value,
            disabled=busy,
        )
        st.date_input("Fecha objetivo", key="form_date", disabled=busy)
        st.text_input(
            "Prompt personalizado para la imagen",
            key="form_prompt",
            placeholder="Ej: Ferrari rojo en la costa amalfitana",
            disabled=busy,
        )

    with col2:
        if st.session_state.pending_action == "regenerate":
            st.info("Generando imagen...")
        elif st.session_state.form_image:
            st.image(st.session_state.form_image, use_container_width=True)
        else:
            st.caption("La imagen se generará al guardar.")

        st.button(
            "🪄 Regenerar imagen",
            disabled=busy,
            on_click=request_action,
            args=("regenerate",),
        )

        st.text_area("Plan de acción", key="form_plan", height=150, disabled=busy)
        st.button(
            "🧠 Generar plan con IA",
            disabled=busy,
            on_click=request_action,
            args=("plan",),
        )

    st.markdown("---")
    col_save, col_cancel = st.columns(2)
    with col_save:
        st.button(
            "💾 Guardar cambios" if editing else "✨ Crear meta",
            type="primary",
            disabled=busy,
            on_click=request_action,
            args=("submit",),
        )
    with col_cancel:
        st.button("Cancelar", disabled=busy, on_click=close_form)

    if busy:
        run_pending_action(flow)


def run_pending_action(flow: WishBoardFlow):
    """Run the one in-flight form action, then rerun with its result."""
    action = st.session_state.pending_action
    draft = current_draft()

    try:
        if action == "regenerate":
            st.session_state.form_image = ""
            with st.spinner("Creando tu visión..."):
                st.session_state.form_image = run_async(flow.regenerate_image(draft))
        elif action == "plan":
            with st.spinner("Diseñando tu plan..."):
                st.session_state.staged_plan = run_async(
                    flow.generate_plan(draft.title, draft.target_amount)
                )
        elif action == "submit":
            with st.spinner("Guardando tu meta..."):
                run_async(flow.submit(draft, editing_id=st.session_state.editing_wish_id))
            st.session_state.return_to_board = True
    except WishInputError as e:
        st.session_state.form_errors = e.messages
    finally:
        st.session_state.pending_action = None

    st.rerun()


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page(flow: WishBoardFlow):
    st.title("⚙️ Configuración")

    st.markdown("### Estado")

    if flow.is_ai_online():
        st.success(f"✅ Gemini - clave encontrada ({flow.masked_api_key()})")
    else:
        st.warning(
            "🟡 Gemini - sin clave. El tablero funciona en modo demo con "
            "imágenes curadas y un plan genérico."
        )

    status = validate_all_settings()
    for name, key in [("Gemini", "gemini"), ("Almacenamiento", "storage"), ("Aplicación", "app")]:
        if status.get(key, False):
            st.success(f"✅ {name} - configuración válida")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'configuración inválida')}")

    settings = get_settings()
    st.markdown("---")
    st.caption(f"Entorno: {settings.app.app_environment}")
    st.markdown("### Almacenamiento")
    st.code(f"{settings.storage.storage_path} → {settings.storage.storage_key}")

    st.markdown("### Configuración")
    st.markdown(
        "Define `GEMINI_API_KEY` (o `API_KEY` / `VITE_API_KEY`) en el entorno "
        "o en un archivo `.env` para activar la IA."
    )


if __name__ == "__main__":
    main()
