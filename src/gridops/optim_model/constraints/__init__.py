from . import device_constr, reserve_constr, system_constr
