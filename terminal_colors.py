class TermColors:
    """ANSI escape codes for colorizing ring status and demo output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    GRAY = '\033[90m'

    # Cycled through so each server keeps one color for the whole run
    SERVER_PALETTE = (
        '\033[94m',  # light blue
        '\033[92m',  # light green
        '\033[95m',  # light magenta
        '\033[96m',  # light cyan
        '\033[93m',  # light yellow
        '\033[91m',  # light red
    )

    def __init__(self):
        self._server_colors = {}

    @staticmethod
    def colorize(text, color, bold=False, dim=False):
        """Applies color and style to a string."""
        style = ''
        if bold: style += TermColors.BOLD
        if dim: style += TermColors.DIM
        return f"{style}{color}{text}{TermColors.RESET}"

    def server(self, server_id):
        """Colors a server ID, assigning palette colors in first-seen order."""
        if server_id not in self._server_colors:
            index = len(self._server_colors) % len(self.SERVER_PALETTE)
            self._server_colors[server_id] = self.SERVER_PALETTE[index]
        return self.colorize(server_id, self._server_colors[server_id], bold=True)

    def heading(self, text):
        return self.colorize(text, TermColors.CYAN, bold=True)

    def success(self, text):
        return self.colorize(text, TermColors.GREEN)

    def warning(self, text):
        return self.colorize(text, TermColors.YELLOW)

    def error(self, text):
        return self.colorize(text, TermColors.RED, bold=True)


# Create a global instance for easy importing and use
TC = TermColors()
