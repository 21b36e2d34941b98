


class PdbLoadError(Exception):
	pass


class ModelConstructionError(Exception):
	pass


class PymolCommunicationError(Exception):
	pass


class TinkerError(Exception):
	def __init__(self, *args, program=None, **kwargs):
		super().__init__(*args, **kwargs)
		self.program = program


class TinkerCancelled(TinkerError):
	pass
