from pydantic import BaseModel

from chainforge.ext.ext_httpx.main import HttpxConfig


class ExtensionRegistry(BaseModel):
    """
    define here
    """

    httpx: HttpxConfig = HttpxConfig()
