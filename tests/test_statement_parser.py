from functions.finance_api.statement_parser import (
    StatementLine,
    decode_upload,
    iter_statement_lines,
    parse_line,
    parse_statement,
)


def test_parse_line_basic():
    assert parse_line("01/15/2024 Grocery Store $45.67") == StatementLine(
        date="01/15/2024", description="Grocery Store", amount=45.67
    )


def test_line_without_date_is_skipped():
    assert parse_line("Grocery Store $45.67") is None


def test_line_without_amount_is_skipped():
    assert parse_line("01/15/2024 Opening balance") is None


def test_thousands_separator_is_stripped():
    line = parse_line("12-01-2023 Refund 1,234.50")
    assert line.amount == 1234.50
    assert line.description == "Refund"
    assert line.date == "12-01-2023"


def test_blank_lines_never_produce_candidates():
    assert parse_statement("") == []
    assert parse_statement("\n   \n\t\n") == []


def test_first_date_and_first_amount_win():
    line = parse_line("3/4/24,Coffee 2 cups,7.50,02/05/2024")
    assert line.date == "3/4/24"
    assert line.amount == 2.0
    assert line.description == ",Coffee  cups,7.50,02/05/2024"


def test_csv_and_tsv_columns():
    text = "Date,Description,Amount\n01/02/2024,Salary,\"3,000.00\"\n01/03/2024\tRent\t$1,200\r\n"
    result = [t.to_dict() for t in parse_statement(text)]
    assert result == [
        {"date": "01/02/2024", "description": ",Salary,\"\"", "amount": 3000.0},
        {"date": "01/03/2024", "description": "Rent", "amount": 1200.0},
    ]


def test_other_currency_signs():
    assert parse_line("05-06-2024 Hotel €89.90").amount == 89.90
    assert parse_line("05-06-2024 Hotel €89.90").description == "Hotel"


def test_parser_is_deterministic():
    text = "01/15/2024 Grocery Store $45.67\nnoise\n12-01-2023 Refund 1,234.50\n"
    assert parse_statement(text) == parse_statement(text)
    assert list(iter_statement_lines(text)) == parse_statement(text)


def test_decode_upload_handles_bom_and_bad_bytes():
    assert decode_upload("\ufeff01/15/2024 X $1".encode("utf-8")) == "01/15/2024 X $1"
    assert "\ufffd" in decode_upload(b"01/15/2024 \xff $1")


def test_trailing_decimal_point_belongs_to_amount():
    line = parse_line("01/02/2024 Shop 45.")
    assert line.amount == 45.0
    assert line.description == "Shop"
