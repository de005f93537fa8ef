# cli.py
import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Dict, Any, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from sdk.stockclient import StockClient, StockAPIError
from stockledger.config import settings
from stockledger.metrics import format_currency

console = Console()

status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})

STATUS_STYLES = {"OUT": "red", "LOW": "dark_orange", "NORMAL": "green"}


# ---------------------------
# Display helpers
# ---------------------------
def _price(value) -> str:
    try:
        return format_currency(Decimal(str(value if value is not None else "0")))
    except InvalidOperation:
        return str(value)


def products_table(products: List[Dict[str, Any]], title: str = "📦 Inventory") -> Table:
    table = Table(
        title=title,
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True,
    )
    table.add_column("ID", style="dim", width=12)
    table.add_column("SKU", width=10)
    table.add_column("Name", style="bold", width=22)
    table.add_column("Category", width=14)
    table.add_column("Qty / Min", justify="right", width=10)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Status", width=8)

    for p in products:
        status = p.get("status", "NORMAL")
        style = STATUS_STYLES.get(status, "white")
        table.add_row(
            p.get("id", "N/A")[:12],
            p.get("sku", ""),
            p.get("name", ""),
            p.get("category") or "-",
            f"[{style}]{p.get('quantity', 0)}[/{style}] / {p.get('min_quantity', 0)}",
            f"${_price(p.get('price'))}",
            f"[{style}]{status}[/{style}]",
        )
    return table


def show_products(products: List[Dict[str, Any]], title: str = "📦 Inventory"):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return
    console.print(products_table(products, title))


def metrics_panel(m: Dict[str, Any]) -> Panel:
    grid = Table.grid(padding=(0, 4))
    for _ in range(4):
        grid.add_column(justify="center")
    grid.add_row("Total Products", "Low Stock", "Out of Stock", "Total Value")
    grid.add_row(
        f"[bold]{m.get('total', 0)}[/bold]",
        f"[bold dark_orange]{m.get('low_stock', 0)}[/bold dark_orange]",
        f"[bold red]{m.get('out_of_stock', 0)}[/bold red]",
        f"[bold green]${m.get('total_value_display', '0.00')}[/bold green]",
    )
    return Panel(grid, title="📊 Stock health", border_style="green")


def transactions_table(product: Dict[str, Any], entries: List[Dict[str, Any]]) -> Table:
    table = Table(
        title=f"🧾 Ledger for {product.get('name', product.get('id', '?'))}",
        box=box.ROUNDED,
        header_style="bold yellow",
    )
    table.add_column("When", width=20)
    table.add_column("Type", width=5)
    table.add_column("Qty", justify="right", width=6)
    table.add_column("Notes", width=30)
    for t in entries:
        style = "green" if t.get("type") == "IN" else "red"
        sign = "+" if t.get("type") == "IN" else "-"
        table.add_row(
            str(t.get("created_at", ""))[:19].replace("T", " "),
            f"[{style}]{t.get('type')}[/{style}]",
            f"[{style}]{sign}{t.get('quantity')}[/{style}]",
            t.get("notes") or "",
        )
    return table


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """Call fn with a spinner; API errors become a red status panel and None."""
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)
    except StockAPIError as e:
        status_message = f"Error: {e.detail or e.code}"
        console.print(show_status(status_message, False))
        return None
    except Exception as e:
        status_message = f"Error: {e}"
        console.print(show_status(status_message, False))
        return None

    if success_msg:
        status_message = success_msg
        console.print(show_status(success_msg, True))
    return result


# ---------------------------
# Input helpers
# ---------------------------
def get_product_completer(c: StockClient):
    global product_cache
    if not product_cache:
        product_cache = try_api(c.list_products) or []
    words = [p.get("id", "") for p in product_cache] + [p.get("sku", "") for p in product_cache]
    return WordCompleter([w for w in words if w], ignore_case=True)


def resolve_product_id(text: str) -> str:
    """Accept either a product id or a SKU from the cached catalog."""
    for p in product_cache:
        if text in (p.get("id"), p.get("sku")):
            return p["id"]
    return text


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_price(message: str, default: str = "0.00") -> str:
    # validated on the server, which rejects negatives and non-numbers
    return Prompt.ask(message, default=default).strip()


def ask_product(c: StockClient) -> str:
    return resolve_product_id(
        prompt_with_autocomplete("Product ID or SKU", completer=get_product_completer(c)).strip()
    )


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)
    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "📦 stock-ledger",
        "[bold blue]Inventory Management[/bold blue]",
        f"[dim]{now}[/dim]",
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Main menu
# ---------------------------
def menu(c: StockClient):
    global status_message, product_cache

    console.clear()
    console.print(create_header())
    product_cache = try_api(c.list_products) or []

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        options = [
            ("1", "📦 All products", "6", "➕ Stock in"),
            ("2", "⚠️ Low stock", "7", "➖ Stock out"),
            ("3", "⛔ Out of stock", "8", "🧾 Ledger history"),
            ("4", "🆕 Add product", "9", "🔎 Audit product"),
            ("5", "✏️ Edit product", "10", "🗑️ Delete product"),
            ("m", "📊 Metrics", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 11)] + ["m", "q", "quit", "exit"]),
        ).strip()

        if choice in ("1", "2", "3"):
            selector = {"1": "all", "2": "low", "3": "out"}[choice]
            products = try_api(c.list_products, selector, success_msg=f"Loaded {selector} products")
            if products is not None:
                if selector == "all":
                    product_cache = products
                show_products(products)

        elif choice == "4":
            name = prompt_with_autocomplete("Product name")
            sku = prompt_with_autocomplete("SKU")
            price = ask_price("💰 Unit price")
            qty = IntPrompt.ask("📦 Initial quantity", default=0)
            min_qty = IntPrompt.ask("⚠️ Minimum quantity", default=0)
            category = prompt_with_autocomplete("🏷️ Category") or None
            description = prompt_with_autocomplete("Description") or None
            resp = try_api(
                c.create_product, name, sku, price, qty, min_qty, category, description,
                success_msg=f"Product '{name}' created",
            )
            if resp:
                product_cache = try_api(c.list_products) or []
                show_products([resp])

        elif choice == "5":
            pid = ask_product(c)
            current = try_api(c.get_product, pid)
            if current:
                fields = {
                    "name": prompt_with_autocomplete("Product name", default=current["name"]),
                    "sku": prompt_with_autocomplete("SKU", default=current["sku"]),
                    "category": prompt_with_autocomplete("Category", default=current.get("category") or "") or None,
                    "min_quantity": IntPrompt.ask("Minimum quantity", default=current["min_quantity"]),
                    "price": ask_price("Unit price", default=str(current["price"])),
                }
                resp = try_api(c.update_product, pid, success_msg="Product updated", **fields)
                if resp:
                    product_cache = try_api(c.list_products) or []
                    show_products([resp])

        elif choice in ("6", "7"):
            pid = ask_product(c)
            qty = IntPrompt.ask("Quantity", default=1)
            notes = prompt_with_autocomplete("Notes") or None
            fn = c.receive if choice == "6" else c.withdraw
            resp = try_api(fn, pid, qty, notes, success_msg="Stock movement recorded")
            if resp:
                product_cache = try_api(c.list_products) or []
                show_products([resp["product"]])

        elif choice == "8":
            pid = ask_product(c)
            product = try_api(c.get_product, pid) or {"id": pid}
            entries = try_api(c.list_transactions, pid, success_msg="Ledger loaded")
            if entries is not None:
                if entries:
                    console.print(transactions_table(product, entries))
                else:
                    console.print("[italic yellow]No stock movements recorded[/italic yellow]")

        elif choice == "9":
            pid = ask_product(c)
            audit = try_api(c.audit, pid)
            if audit:
                ok = audit.get("consistent")
                console.print(Panel.fit(
                    f"Initial: {audit['initial_quantity']}  Ledger: {audit['ledger_total']:+d}  "
                    f"Expected: {audit['expected_quantity']}  Stored: {audit['quantity']}",
                    title="✅ Consistent" if ok else "❌ Mismatch",
                    border_style="green" if ok else "red",
                ))

        elif choice == "10":
            pid = ask_product(c)
            if Confirm.ask("[red]Delete this product? Its ledger history is kept.[/red]"):
                try_api(c.delete_product, pid, success_msg="Product deleted")
                product_cache = try_api(c.list_products) or []

        elif choice.lower() == "m":
            m = try_api(c.metrics, success_msg="Metrics loaded")
            if m:
                console.print(metrics_panel(m))

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Bye! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


def main():
    try:
        menu(StockClient(base_url=settings.api_url))
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
