"""Structured response schemas for the statement analysis requests.

Field descriptions are sent to the model as part of the JSON schema, so they
double as per-field instructions.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class StatementClassification(BaseModel):
    """Response to the "is this a bank statement?" request."""
    document_analysis: str = Field(
        description="A detailed analysis of the images presented. What do they contain?"
    )
    statement_thoughts: str = Field(
        description=(
            "Go through each image individually and argue how it supports or "
            "detracts from the theory that the images make up a bank statement."
        )
    )
    concluding_thoughts: str = Field(
        description="Based on the analysis, do you believe this is a bank statement?"
    )
    statement_likelihood: float = Field(
        description="How likely is this to be a bank statement, from 0 to 100."
    )


class StatementDetails(BaseModel):
    """Response to the account holder details request."""
    document_analysis: str = Field(
        description=(
            "Find the name and address of the account holder. Analyse every "
            "section of every image, even after you believe you have found the "
            "information. If a piece of information cannot be found, say so."
        )
    )
    name_found: bool = Field(description="Did you find the name of the account holder?")
    name: str = Field(description="The name of the account holder")
    address_found: bool = Field(description="Did you find the address of the account holder?")
    address: str = Field(description="The address of the account holder")


class AmountEntry(BaseModel):
    """A monetary amount as printed on the statement."""
    currency: str = Field(description="ISO 4217 currency code, for example GBP")
    symbol: str = Field(description="Currency symbol as printed, for example £")
    value: str = Field(description="The numeric amount exactly as printed, without sign")


class BalanceEntry(AmountEntry):
    """An account balance, which can be negative when the account is overdrawn."""
    value: str = Field(
        description=(
            "The numeric balance as printed, with a leading minus when the "
            "account is overdrawn, for example when it is printed with DR"
        )
    )


class TransactionEntry(BaseModel):
    """One transaction line of the statement."""
    date: str = Field(description="The date of the transaction as printed")
    description: Optional[str] = Field(description="The description of the transaction")
    details: Optional[str] = Field(description="Any further details printed for the transaction")
    direction: Literal["incoming", "outgoing"] = Field(
        description="incoming if money entered the account, outgoing if it left"
    )
    amount: AmountEntry = Field(description="The amount of the transaction")


class TransactionDetails(BaseModel):
    """Response to the ledger extraction request."""
    original_balance: BalanceEntry = Field(
        description="The opening balance of the account, according to the statement"
    )
    transactions: List[TransactionEntry] = Field(
        description="Every transaction on the statement, in the order printed"
    )
    final_balance_on_statement: BalanceEntry = Field(
        description="The closing balance of the account, according to the statement"
    )
    final_balance_calculated: BalanceEntry = Field(
        description=(
            "The closing balance you calculate by adding the incoming and "
            "subtracting the outgoing transactions from the opening balance"
        )
    )
    is_balances_equal: bool = Field(
        description="Whether the closing balance on the statement equals your calculated closing balance"
    )
    any_missing_information: bool = Field(
        description="Whether any information needed for the calculation is missing from the statement"
    )


class ConcernEntry(BaseModel):
    """A single fraud signal."""
    description: str = Field(description="What looks suspicious and where it appears")
    severity: Literal["low", "medium", "high"] = Field(description="How serious the concern is")


class FraudAnalysis(BaseModel):
    """Response to the fraud assessment request."""
    analysis: str = Field(
        description=(
            "A detailed comparison of the page images with the extracted page "
            "text, looking for signs of editing or fabrication"
        )
    )
    concerns: List[ConcernEntry] = Field(description="Each discrete concern found")
    fraud_likelihood: float = Field(
        description="How likely the statement is to have been tampered with, from 0 to 100"
    )
