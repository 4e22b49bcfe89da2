from typing import Optional, Union

from pydantic import BaseModel, StrictFloat, StrictInt


class InitiatePaymentRequest(BaseModel):
    # Smallest currency unit (kobo). Strict types keep JSON booleans and numeric
    # strings from being coerced; range checks live in the transaction service.
    amount: Optional[Union[StrictInt, StrictFloat]] = None
    email: Optional[str] = None
