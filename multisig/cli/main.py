from __future__ import annotations

"""
multisig.cli.main
-----------------

Operator CLI over the configured governance store.

Examples
--------
# Bootstrap with three admins, 2-of-3, and a payout wallet
multisig --db sqlite:///gov.db init -a alice -a bob -a carol -t 2 --wallet treasury

# Propose adding dave (expires after 100 ledgers), approve, execute
multisig --db sqlite:///gov.db propose add-admin dave --as alice --ttl 100
multisig --db sqlite:///gov.db approve 1 --as bob
multisig --db sqlite:///gov.db execute 1 --as carol

# Inspect
multisig --db sqlite:///gov.db config
multisig --db sqlite:///gov.db --json show 1
multisig --db sqlite:///gov.db active

`--now` pins the logical clock (useful for replaying expiry scenarios);
without it the system clock is used.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, NoReturn, Optional

import typer

from ..boot import initialize_from_genesis, open_engine
from ..clock import Clock, ManualClock, SystemClock
from ..config import GenesisSettings, Settings, load, pretty
from ..engine import GovernanceEngine
from ..errors import GovernanceError
from ..logging import configure, configure_from_settings
from ..mtypes.events import serialize_event
from ..mtypes.proposal import AddAdmin, ProposalKind, RemoveAdmin, SetThreshold, SetWallet
from ..rpc.methods import config_view, proposal_view
from ..sinks import FanoutSink, LoggingSink, MemorySink

app = typer.Typer(
    name="multisig",
    add_completion=False,
    no_args_is_help=True,
    help="Threshold multi-signature governance: admins, threshold and payout wallet.",
)
propose_app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Create governance proposals (the proposer's approval is recorded automatically).",
)
app.add_typer(propose_app, name="propose")


@dataclass
class _Ctx:
    settings: Settings
    now: Optional[int] = None
    json_out: bool = False
    events: MemorySink = field(default_factory=MemorySink)
    _engine: Optional[GovernanceEngine] = None

    def clock(self) -> Clock:
        return ManualClock(self.now) if self.now is not None else SystemClock()

    def engine(self) -> GovernanceEngine:
        if self._engine is None:
            sink = FanoutSink([LoggingSink(), self.events])
            self._engine = open_engine(self.settings, clock=self.clock(), sink=sink)
        return self._engine


# -------------------- output --------------------

def _emit(ctx: _Ctx, payload: Any, human: Optional[str] = None) -> None:
    if ctx.json_out or human is None:
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    else:
        typer.echo(human)
    if not ctx.json_out:
        for ev in ctx.events.events:
            d = serialize_event(ev)
            etype = d.pop("etype")
            typer.secho(f"  event {etype} {json.dumps(d, sort_keys=True)}", fg=typer.colors.BLUE)


def _fail(e: GovernanceError) -> NoReturn:
    code = getattr(e.code, "value", e.code)
    typer.secho(f"error: {code}: {e.message}", fg=typer.colors.RED, err=True)
    if e.data:
        typer.secho(json.dumps(e.data, sort_keys=True), err=True)
    raise typer.Exit(1)


def _state(ctx: typer.Context) -> _Ctx:
    return ctx.obj


def _propose(ctx: typer.Context, caller: str, kind: ProposalKind, ttl: int) -> None:
    st = _state(ctx)
    try:
        pid = st.engine().create_proposal(caller, kind, ttl)
    except GovernanceError as e:
        _fail(e)
    _emit(st, {"proposalId": pid}, f"created proposal {pid} ({kind.tag.value})")


# -------------------- root --------------------

@app.callback()
def main_callback(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(
        None, "--db", envvar="MULTISIG_DB_URI", help="Storage URI (sqlite:///path.db or memory://)."
    ),
    now: Optional[int] = typer.Option(
        None, "--now", min=0, help="Pin the logical clock to this timestamp."
    ),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log at the configured level (MULTISIG_LOG_LEVEL, default INFO)."
    ),
) -> None:
    settings = load()
    if db:
        settings.storage.uri = db
        settings.validate()
    if verbose:
        configure_from_settings(settings)
    else:
        configure(json=False, level="WARNING")
    ctx.obj = _Ctx(settings=settings, now=now, json_out=json_out)


@app.command("init")
def cmd_init(
    ctx: typer.Context,
    admin: List[str] = typer.Option(
        None, "--admin", "-a", help="Genesis admin (repeatable). Defaults to configured genesis."
    ),
    wallet: Optional[str] = typer.Option(None, "--wallet", "-w", help="Payout wallet address."),
    threshold: Optional[int] = typer.Option(None, "--threshold", "-t", help="Approval threshold."),
) -> None:
    """Bootstrap governance (once)."""
    st = _state(ctx)
    g = st.settings.genesis
    genesis = GenesisSettings(
        admins=tuple(admin) if admin else g.admins,
        threshold=threshold if threshold is not None else g.threshold,
        wallet=wallet if wallet is not None else g.wallet,
    )
    try:
        cfg = initialize_from_genesis(st.engine(), genesis)
    except GovernanceError as e:
        _fail(e)
    _emit(
        st,
        {**config_view(cfg), "wallet": genesis.wallet},
        f"initialized: {cfg.threshold}-of-{len(cfg.admins)} admins={','.join(cfg.admins)} "
        f"wallet={genesis.wallet}",
    )


# -------------------- propose --------------------

_AS = typer.Option(..., "--as", "--caller", help="Principal acting (must be a current admin).")
_TTL = typer.Option(0, "--ttl", min=0, help="Ledgers until expiry (0 = never).")


@propose_app.command("add-admin")
def propose_add_admin(ctx: typer.Context, admin: str = typer.Argument(...),
                      caller: str = _AS, ttl: int = _TTL) -> None:
    """Propose adding ADMIN to the admin set."""
    _propose(ctx, caller, AddAdmin(admin), ttl)


@propose_app.command("remove-admin")
def propose_remove_admin(ctx: typer.Context, admin: str = typer.Argument(...),
                         caller: str = _AS, ttl: int = _TTL) -> None:
    """Propose removing ADMIN from the admin set."""
    _propose(ctx, caller, RemoveAdmin(admin), ttl)


@propose_app.command("set-threshold")
def propose_set_threshold(ctx: typer.Context, threshold: int = typer.Argument(...),
                          caller: str = _AS, ttl: int = _TTL) -> None:
    """Propose a new approval THRESHOLD."""
    _propose(ctx, caller, SetThreshold(threshold), ttl)


@propose_app.command("set-wallet")
def propose_set_wallet(ctx: typer.Context, address: str = typer.Argument(...),
                       caller: str = _AS, ttl: int = _TTL) -> None:
    """Propose a new payout wallet ADDRESS."""
    _propose(ctx, caller, SetWallet(address), ttl)


# -------------------- approve / execute --------------------

@app.command("approve")
def cmd_approve(ctx: typer.Context, proposal_id: int = typer.Argument(..., min=1),
                caller: str = _AS) -> None:
    """Approve proposal PROPOSAL_ID."""
    st = _state(ctx)
    try:
        p = st.engine().approve_proposal(caller, proposal_id)
    except GovernanceError as e:
        _fail(e)
    _emit(st, proposal_view(p), f"approved proposal {p.id} ({len(p.approvals)} approvals)")


@app.command("execute")
def cmd_execute(ctx: typer.Context, proposal_id: int = typer.Argument(..., min=1),
                caller: str = _AS) -> None:
    """Execute proposal PROPOSAL_ID once enough current admins approved it."""
    st = _state(ctx)
    try:
        p = st.engine().execute_proposal(caller, proposal_id)
    except GovernanceError as e:
        _fail(e)
    _emit(st, proposal_view(p), f"executed proposal {p.id} ({p.kind.tag.value})")


# -------------------- inspect --------------------

def _proposal_line(d: Dict[str, Any]) -> str:
    kind = dict(d["kind"])
    tag = kind.pop("kind")
    arg = next(iter(kind.values()), "")
    exp = "never" if d["expiresAt"] is None else str(d["expiresAt"])
    flags = "executed" if d["executed"] else ("expired" if d.get("expired") else "open")
    return (f"#{d['id']:<4} {tag:<14} {str(arg):<20} by={d['proposer']:<10} "
            f"approvals={len(d['approvals'])} expires={exp} [{flags}]")


@app.command("show")
def cmd_show(ctx: typer.Context, proposal_id: int = typer.Argument(..., min=1)) -> None:
    """Show one proposal."""
    st = _state(ctx)
    eng = st.engine()
    try:
        d = proposal_view(eng.get_proposal(proposal_id), eng.clock.now())
        counted = list(eng.counted_approvals(proposal_id))
    except GovernanceError as e:
        _fail(e)
    d["countedApprovals"] = counted
    human = _proposal_line(d) + f"\n  approvals: {', '.join(d['approvals'])}" \
        + f"\n  counted:   {', '.join(counted) or '-'}"
    _emit(st, d, human)


@app.command("active")
def cmd_active(ctx: typer.Context) -> None:
    """List proposals that have not been executed (expired ones included)."""
    st = _state(ctx)
    eng = st.engine()
    now = eng.clock.now()
    rows = [proposal_view(eng.get_proposal(i), now) for i in eng.list_active_proposals()]
    _emit(st, rows, "\n".join(_proposal_line(r) for r in rows) or "No active proposals.")


@app.command("list")
def cmd_list(ctx: typer.Context) -> None:
    """List every proposal ever created."""
    st = _state(ctx)
    eng = st.engine()
    now = eng.clock.now()
    rows = [proposal_view(p, now) for p in eng.list_proposals()]
    _emit(st, rows, "\n".join(_proposal_line(r) for r in rows) or "No proposals.")


@app.command("config")
def cmd_config(ctx: typer.Context) -> None:
    """Show the current admin set, threshold and payout wallet."""
    st = _state(ctx)
    eng = st.engine()
    try:
        d = {**config_view(eng.get_config()), "wallet": eng.get_wallet()}
    except GovernanceError as e:
        _fail(e)
    _emit(st, d, f"threshold: {d['threshold']}-of-{len(d['admins'])}\n"
                 f"admins:    {', '.join(d['admins'])}\nwallet:    {d['wallet']}")


@app.command("settings")
def cmd_settings(ctx: typer.Context) -> None:
    """Print the resolved settings (defaults < config file < environment)."""
    typer.echo(pretty(_state(ctx).settings))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
